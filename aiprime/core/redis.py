"""
Redis Connection Manager
Owns the connection pool behind the Redis state backend.
"""

import logging
from typing import Optional
from redis import Redis, ConnectionPool
from redis.exceptions import ConnectionError, TimeoutError

from aiprime.core.config import settings

logger = logging.getLogger(__name__)


class RedisManager:
    """
    Lazily created Redis pool for one URL.

    The state backend asks it for a client, reports its health through it
    and closes it on shutdown.
    """

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.REDIS_URL
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[Redis] = None

    def _create_pool(self) -> ConnectionPool:
        return ConnectionPool.from_url(
            self.url,
            max_connections=10,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            decode_responses=True  # State values are JSON text
        )

    def get_connection(self) -> Redis:
        """Client bound to the pool; the pool is created on first use."""
        if self._pool is None:
            self._pool = self._create_pool()
            logger.info(f"Created Redis connection pool for {self._mask_url(self.url)}")

        if self._client is None:
            self._client = Redis(connection_pool=self._pool)

        return self._client

    def health_check(self) -> dict:
        """
        Ping the server.

        Returns:
            dict with ``connected`` plus the server version or the error
        """
        try:
            client = self.get_connection()
            client.ping()
            info = client.info("server")
            return {
                "connected": True,
                "redis_version": info.get("redis_version", "unknown"),
                "url": self._mask_url(self.url),
            }
        except (ConnectionError, TimeoutError) as e:
            logger.error(f"Redis health check failed: {e}")
            return {
                "connected": False,
                "error": str(e),
                "url": self._mask_url(self.url),
            }

    @staticmethod
    def _mask_url(url: str) -> str:
        """Hide credentials in log lines: redis://:pw@host -> redis://***@host."""
        if "@" in url:
            return f"redis://***@{url.split('@')[-1]}"
        return url

    def close(self):
        """Disconnect every pooled connection."""
        if self._pool:
            self._pool.disconnect()
            self._pool = None
            self._client = None
            logger.info("Redis connection pool closed")


__all__ = ["RedisManager"]
