"""Tests for the Redis store against a mocked client."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from configbind.config.settings import RedisConfig
from configbind.database.redis_client import RedisClient
from configbind.domain.config import ConfigEntry
from configbind.errors import IdentifierValidationError
from configbind.repository.redis_store import RedisConfigStore


@pytest.fixture
def pipe() -> MagicMock:
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[])
    return pipe


@pytest.fixture
def redis(pipe: MagicMock) -> MagicMock:
    redis = MagicMock()
    redis.hget = AsyncMock()
    redis.hgetall = AsyncMock()
    redis.pipeline.return_value.__aenter__.return_value = pipe
    return redis


@pytest.fixture
def redis_client(redis: MagicMock) -> MagicMock:
    client = MagicMock()
    client.config = RedisConfig(host="cache", key_prefix="cfg")
    client.get_redis = AsyncMock(return_value=redis)
    client.close = AsyncMock()
    return client


class TestRedisConfigStore:
    """Test cases for RedisConfigStore."""

    @pytest.mark.parametrize("prefix", ["cfg:*", "cfg prefix", "p" * 65])
    def test_prefix_validated(self, redis_client: MagicMock, prefix: str) -> None:
        with pytest.raises(IdentifierValidationError):
            RedisConfigStore(redis_client, key_prefix=prefix)

    async def test_get_scoped(self, redis_client: MagicMock, redis: MagicMock) -> None:
        redis.hget.return_value = "1"
        store = RedisConfigStore(redis_client)

        entry = await store.get("a.b", "A")

        assert entry == ConfigEntry(key="a.b", value="1", scope="A")
        redis.hget.assert_awaited_once_with("cfg:s:A", "a.b")

    async def test_get_unscoped_uses_reserved_segment(
        self, redis_client: MagicMock, redis: MagicMock
    ) -> None:
        redis.hget.return_value = None
        store = RedisConfigStore(redis_client)

        assert await store.get("a.b") is None
        redis.hget.assert_awaited_once_with("cfg:__null__", "a.b")

    @pytest.mark.parametrize("scope", ["default", "__null__", "__default__", "s:"])
    async def test_scope_names_never_reach_unscoped_hash(
        self, redis_client: MagicMock, redis: MagicMock, scope: str
    ) -> None:
        redis.hgetall.return_value = {}
        store = RedisConfigStore(redis_client)

        await store.get_all(scope)
        await store.get_all(None)

        names = [call.args[0] for call in redis.hgetall.await_args_list]
        assert names == [f"cfg:s:{scope}", "cfg:__null__"]

    async def test_get_all(self, redis_client: MagicMock, redis: MagicMock) -> None:
        redis.hgetall.return_value = {"a.b": "1", "a.c": ""}
        store = RedisConfigStore(redis_client)

        entries = await store.get_all("A")

        assert entries == {
            "a.b": ConfigEntry(key="a.b", value="1", scope="A"),
            "a.c": ConfigEntry(key="a.c", value="", scope="A"),
        }

    async def test_upsert_one_hset_per_scope(
        self, redis_client: MagicMock, redis: MagicMock, pipe: MagicMock
    ) -> None:
        store = RedisConfigStore(redis_client)

        await store.upsert(
            [
                ConfigEntry(key="a.b", value="1", scope="A"),
                ConfigEntry(key="a.c", value="2", scope="A"),
                ConfigEntry(key="g.x", value="3"),
            ]
        )

        redis.pipeline.assert_called_once_with(transaction=False)
        pipe.hset.assert_any_call("cfg:s:A", mapping={"a.b": "1", "a.c": "2"})
        pipe.hset.assert_any_call("cfg:__null__", mapping={"g.x": "3"})
        assert pipe.hset.call_count == 2
        pipe.execute.assert_awaited_once()

    async def test_upsert_failure_propagates(
        self, redis_client: MagicMock, pipe: MagicMock
    ) -> None:
        pipe.execute.side_effect = RedisConnectionError("reset by peer")
        store = RedisConfigStore(redis_client)

        with pytest.raises(RedisConnectionError):
            await store.upsert([ConfigEntry(key="a.b", value="1")], "A")

    async def test_empty_batch_skips_redis(self, redis_client: MagicMock) -> None:
        store = RedisConfigStore(redis_client)

        await store.upsert([], "A")

        redis_client.get_redis.assert_not_awaited()

    async def test_close(self, redis_client: MagicMock) -> None:
        await RedisConfigStore(redis_client).close()
        redis_client.close.assert_awaited_once()


class TestRedisClient:
    """Test cases for RedisClient connection handling."""

    async def test_lazy_connect(self, mocker) -> None:
        fake = MagicMock()
        fake.ping = AsyncMock(return_value=True)
        fake.aclose = AsyncMock()
        create = mocker.patch("configbind.database.redis_client.redis_async.Redis", return_value=fake)
        client = RedisClient(RedisConfig(host="cache", port=6380, url=None))

        assert await client.get_redis() is fake
        assert await client.get_redis() is fake

        create.assert_called_once()
        assert create.call_args.kwargs["decode_responses"] is True

        await client.close()
        fake.aclose.assert_awaited_once()
        assert client.redis is None

    async def test_connect_failure(self, mocker) -> None:
        fake = MagicMock()
        fake.ping = AsyncMock(side_effect=OSError("refused"))
        mocker.patch("configbind.database.redis_client.redis_async.Redis", return_value=fake)
        client = RedisClient(RedisConfig(host="cache", url=None))

        with pytest.raises(ConnectionError):
            await client.get_redis()
