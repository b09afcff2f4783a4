"""
Unit tests for RedisCache with a mocked Redis client.
"""
import msgpack
import pytest
from unittest.mock import AsyncMock, MagicMock, call

from internal.domain.errors import CacheError
from internal.infrastructure.redis.cache import RedisCache


def make_redis():
    redis = MagicMock()
    redis.get = AsyncMock(return_value=None)
    redis.setex = AsyncMock()
    redis.delete = AsyncMock(return_value=1)
    redis.exists = AsyncMock(return_value=1)

    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[True, 1])
    pipeline_cm = MagicMock()
    pipeline_cm.__aenter__ = AsyncMock(return_value=pipe)
    pipeline_cm.__aexit__ = AsyncMock(return_value=False)
    redis.pipeline = MagicMock(return_value=pipeline_cm)
    return redis, pipe


@pytest.fixture
def redis_and_pipe():
    return make_redis()


@pytest.fixture
def cache(redis_and_pipe):
    redis, _ = redis_and_pipe
    return RedisCache("redis://unused", prefix="test:", max_jitter=0, client=redis)


class TestRedisCache:
    """Tests for RedisCache."""

    @pytest.mark.asyncio
    async def test_get_hit(self, cache, redis_and_pipe):
        redis, _ = redis_and_pipe
        redis.get.return_value = msgpack.packb({"sku": "A"}, use_bin_type=True)

        assert await cache.get("product.sku.A") == {"sku": "A"}
        redis.get.assert_awaited_once_with("test:product.sku.A")

    @pytest.mark.asyncio
    async def test_get_miss(self, cache):
        assert await cache.get("missing") is None

    @pytest.mark.asyncio
    async def test_get_error_is_a_miss(self, cache, redis_and_pipe):
        redis, _ = redis_and_pipe
        redis.get.side_effect = ConnectionError("down")

        assert await cache.get("key") is None

    @pytest.mark.asyncio
    async def test_set_uses_ttl(self, cache, redis_and_pipe):
        redis, _ = redis_and_pipe

        assert await cache.set("key", {"a": 1}, ttl=30) is True

        key, ttl, data = redis.setex.call_args.args
        assert key == "test:key"
        assert ttl == 30
        assert msgpack.unpackb(data, raw=False) == {"a": 1}

    @pytest.mark.asyncio
    async def test_ttl_jitter_is_bounded(self, redis_and_pipe):
        redis, _ = redis_and_pipe
        cache = RedisCache("redis://unused", max_jitter=5, client=redis)

        for _ in range(20):
            assert 100 <= cache._get_ttl_with_jitter(100) <= 105

    @pytest.mark.asyncio
    async def test_set_error_returns_false(self, cache, redis_and_pipe):
        redis, _ = redis_and_pipe
        redis.setex.side_effect = ConnectionError("down")

        assert await cache.set("key", 1) is False

    @pytest.mark.asyncio
    async def test_forget_and_has(self, cache, redis_and_pipe):
        redis, _ = redis_and_pipe

        assert await cache.forget("key") is True
        assert await cache.has("key") is True
        redis.delete.assert_awaited_once_with("test:key")

    @pytest.mark.asyncio
    async def test_remember_computes_once(self, cache, redis_and_pipe):
        redis, _ = redis_and_pipe
        callback = AsyncMock(return_value={"v": 1})

        assert await cache.remember("key", 60, callback) == {"v": 1}
        callback.assert_awaited_once()
        redis.setex.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_remember_does_not_store_none(self, cache, redis_and_pipe):
        redis, _ = redis_and_pipe

        assert await cache.remember("key", 60, AsyncMock(return_value=None)) is None
        redis.setex.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_remember_with_tags_registers_key(self, cache, redis_and_pipe):
        _, pipe = redis_and_pipe

        result = await cache.remember_with_tags(
            ["products"], "products_json_1_10", 300, AsyncMock(return_value={"data": []})
        )

        assert result == {"data": []}
        pipe.setex.assert_called_once()
        assert pipe.setex.call_args.args[:2] == ("test:products_json_1_10", 300)
        pipe.sadd.assert_called_once_with("test:tag:products", "test:products_json_1_10")
        assert pipe.expire.call_args_list == [
            call("test:tag:products", 300, nx=True),
            call("test:tag:products", 300, gt=True),
        ]
        pipe.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_remember_with_tags_hit_skips_callback(self, cache, redis_and_pipe):
        redis, _ = redis_and_pipe
        redis.get.return_value = msgpack.packb([1, 2], use_bin_type=True)
        callback = AsyncMock()

        assert await cache.remember_with_tags(["products"], "k", 60, callback) == [1, 2]
        callback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_flush_tags(self, cache, redis_and_pipe):
        redis, pipe = redis_and_pipe
        pipe.execute.return_value = [{b"test:a", b"test:b"}, 1]
        redis.delete.return_value = 2

        deleted = await cache.flush_tags(["products"])

        assert deleted == 2
        pipe.smembers.assert_called_once_with("test:tag:products")
        pipe.delete.assert_called_once_with("test:tag:products")
        assert redis.pipeline.call_args.kwargs == {"transaction": True}
        assert set(redis.delete.await_args.args) == {b"test:a", b"test:b"}

    @pytest.mark.asyncio
    async def test_flush_empty_tag_deletes_nothing(self, cache, redis_and_pipe):
        redis, pipe = redis_and_pipe
        pipe.execute.return_value = [set(), 0]

        assert await cache.flush_tags(["products"]) == 0
        redis.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_flush_tags_error_raises(self, cache, redis_and_pipe):
        _, pipe = redis_and_pipe
        pipe.execute.side_effect = ConnectionError("down")

        with pytest.raises(CacheError):
            await cache.flush_tags(["products"])

    @pytest.mark.asyncio
    async def test_disconnected_cache_degrades(self):
        cache = RedisCache("redis://unused")

        assert await cache.get("key") is None
        assert await cache.set("key", 1) is False
        assert await cache.flush_tags(["products"]) == 0
        assert await cache.remember_with_tags(
            ["products"], "key", 60, AsyncMock(return_value=5)
        ) == 5
