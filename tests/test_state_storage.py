import json
from unittest.mock import MagicMock, patch

import pytest
import redis
from sqlalchemy.orm import sessionmaker

from aiprime.core.config import Settings
from aiprime.core.database import init_db, make_engine
from aiprime.core.redis import RedisManager
from aiprime.services.state_storage import (
    MemoryStateStorage,
    RedisStateStorage,
    SQLStateStorage,
    build_state_storage,
)


@pytest.fixture
def sql_storage():
    engine = make_engine("sqlite:///:memory:")
    init_db(bind=engine)
    yield SQLStateStorage(sessionmaker(autocommit=False, autoflush=False, bind=engine))
    engine.dispose()


@pytest.fixture
def redis_client():
    data = {}
    client = MagicMock()
    client.get.side_effect = data.get
    client.set.side_effect = lambda key, value: data.__setitem__(key, value)
    client.delete.side_effect = lambda key: data.pop(key, None)
    client.data = data
    return client


@pytest.fixture
def redis_manager(redis_client):
    with patch.object(RedisManager, "get_connection", return_value=redis_client):
        yield RedisManager("redis://localhost:6379/0")


def test_sql_round_trip(sql_storage):
    assert sql_storage.get("videoProductionJobs", []) == []

    sql_storage.set("videoProductionJobs", [{"id": "a"}])
    sql_storage.set("videoProductionJobs", [{"id": "b"}, {"id": "a"}])

    assert sql_storage.get("videoProductionJobs") == [{"id": "b"}, {"id": "a"}]

    sql_storage.delete("videoProductionJobs")
    assert sql_storage.get("videoProductionJobs") is None


def test_sql_health_check(sql_storage):
    assert sql_storage.health_check() == {"status": "ok", "backend": "sql"}


def test_redis_uses_prefixed_json(redis_manager, redis_client):
    storage = RedisStateStorage(redis_manager, prefix="aiprime:")

    storage.set("directivesQueue", [{"directive": "Post daily"}])

    assert json.loads(redis_client.data["aiprime:directivesQueue"]) == [{"directive": "Post daily"}]
    assert storage.get("directivesQueue") == [{"directive": "Post daily"}]
    assert storage.get("missing", "fallback") == "fallback"

    storage.delete("directivesQueue")
    assert "aiprime:directivesQueue" not in redis_client.data


def test_redis_malformed_value_returns_default(redis_manager, redis_client):
    redis_client.data["videoProductionJobs"] = "{not json"
    storage = RedisStateStorage(redis_manager)

    assert storage.get("videoProductionJobs", []) == []


def test_redis_health_check_goes_through_manager(redis_manager, redis_client):
    redis_client.info.return_value = {"redis_version": "7.2.4"}

    health = RedisStateStorage(redis_manager).health_check()

    assert health == {"status": "ok", "backend": "redis", "redis_version": "7.2.4"}
    redis_client.ping.assert_called_once()


def test_redis_health_check_reports_errors(redis_manager, redis_client):
    redis_client.ping.side_effect = redis.exceptions.ConnectionError("refused")

    health = RedisStateStorage(redis_manager).health_check()

    assert health == {"status": "error: refused", "backend": "redis"}


def test_redis_close_disconnects_the_pool():
    manager = RedisManager("redis://:secret@cache:6379/0")
    storage = RedisStateStorage(manager)
    assert manager._pool is not None

    storage.close()

    assert manager._pool is None
    assert manager._mask_url(manager.url) == "redis://***@cache:6379/0"


def test_memory_values_are_copies():
    storage = MemoryStateStorage()
    value = [{"id": "a"}]
    storage.set("k", value)
    value.append({"id": "b"})

    assert storage.get("k") == [{"id": "a"}]


def test_build_state_storage_selects_backend():
    assert isinstance(build_state_storage(Settings(STATE_BACKEND="Memory")), MemoryStateStorage)
    with pytest.raises(ValueError):
        build_state_storage(Settings(STATE_BACKEND="etcd"))
