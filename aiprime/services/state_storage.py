"""
State Storage
Key-value persistence for the dashboard's JSON blobs (jobs, directives, ...).

Backends share one interface:
- SQLStateStorage: one row per key in the ``state_entries`` table
- RedisStateStorage: one JSON string per key in Redis
- MemoryStateStorage: a dict, for tests and throwaway runs

Writes are last-write-wins; there is no cross-process locking.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from sqlalchemy.orm import sessionmaker

from aiprime.core.config import Settings, settings as default_settings
from aiprime.core.redis import RedisManager

logger = logging.getLogger(__name__)

# Fixed storage keys, shared with the browser dashboard's localStorage names
VIDEO_JOBS_KEY = "videoProductionJobs"
DIRECTIVES_KEY = "directivesQueue"
CREDENTIALS_KEY = "credentials"
AGENTS_KEY = "channelAgents"
AUTOMATION_FLOWS_KEY = "automationFlows"


class StateStorage(ABC):
    """Abstract key-value store for JSON-serializable values."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key`` or ``default``."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

    def health_check(self) -> dict:
        return {"status": "ok", "backend": self.backend_name}

    def close(self) -> None:
        """Release connections held by the backend."""

    backend_name = "abstract"


class SQLStateStorage(StateStorage):
    """State rows stored through SQLAlchemy."""

    backend_name = "sql"

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        if session_factory is None:
            from aiprime.core.database import SessionLocal
            session_factory = SessionLocal
        self.session_factory = session_factory

    def get(self, key: str, default: Any = None) -> Any:
        from aiprime.models.state import StateEntry

        db = self.session_factory()
        try:
            entry = db.query(StateEntry).filter(StateEntry.key == key).first()
            if entry is None or entry.value is None:
                return default
            return entry.value
        finally:
            db.close()

    def set(self, key: str, value: Any) -> None:
        from aiprime.models.state import StateEntry

        db = self.session_factory()
        try:
            entry = db.query(StateEntry).filter(StateEntry.key == key).first()
            if entry is None:
                db.add(StateEntry(key=key, value=value))
            else:
                entry.value = value
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def delete(self, key: str) -> None:
        from aiprime.models.state import StateEntry

        db = self.session_factory()
        try:
            db.query(StateEntry).filter(StateEntry.key == key).delete()
            db.commit()
        finally:
            db.close()

    def health_check(self) -> dict:
        from sqlalchemy import text

        db = self.session_factory()
        try:
            db.execute(text("SELECT 1"))
            return {"status": "ok", "backend": self.backend_name}
        except Exception as e:
            return {"status": f"error: {e}", "backend": self.backend_name}
        finally:
            db.close()


class RedisStateStorage(StateStorage):
    """State values stored as JSON strings in Redis."""

    backend_name = "redis"

    def __init__(self, manager: Optional[RedisManager] = None, prefix: str = ""):
        self.manager = manager or RedisManager()
        self.client = self.manager.get_connection()
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str, default: Any = None) -> Any:
        raw = self.client.get(self._key(key))
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.error(f"Discarding malformed state under {key}: {e}")
            return default

    def set(self, key: str, value: Any) -> None:
        self.client.set(self._key(key), json.dumps(value))

    def delete(self, key: str) -> None:
        self.client.delete(self._key(key))

    def health_check(self) -> dict:
        health = self.manager.health_check()
        if health["connected"]:
            return {"status": "ok", "backend": self.backend_name, "redis_version": health["redis_version"]}
        return {"status": f"error: {health['error']}", "backend": self.backend_name}

    def close(self) -> None:
        self.manager.close()


class MemoryStateStorage(StateStorage):
    """Process-local state, lost on restart. Values are copied through JSON like the real backends."""

    backend_name = "memory"

    def __init__(self):
        self._data = {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return json.loads(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


def build_state_storage(config: Optional[Settings] = None) -> StateStorage:
    """Create the state backend selected by ``STATE_BACKEND``."""
    config = config or default_settings

    if config.STATE_BACKEND == "memory":
        logger.warning("Using in-memory state storage; jobs are lost on restart")
        return MemoryStateStorage()

    if config.STATE_BACKEND == "redis":
        logger.info("Using Redis state storage")
        return RedisStateStorage(RedisManager(config.REDIS_URL), prefix=config.STATE_KEY_PREFIX)

    if config.STATE_BACKEND != "sql":
        raise ValueError(f"Unknown STATE_BACKEND: {config.STATE_BACKEND}")

    logger.info("Using SQL state storage")
    return SQLStateStorage()
