"""
Redis Cache implementation.

Cache-aside store with TTL jitter, msgpack serialization and tag-based
invalidation. Every key is namespaced with a prefix. A tag is a Redis set
``{prefix}tag:{tag}`` listing the keys written under it; it expires with
its longest-lived member (EXPIRE NX/GT, Redis 7 or newer).
"""
import random
from typing import Any, Awaitable, Callable, Optional

import msgpack
import redis.asyncio as aioredis
from redis.asyncio import Redis

from internal.domain.errors import CacheError
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


DEFAULT_PREFIX = "shopify:"
# Default TTL in seconds (10 minutes)
DEFAULT_TTL = 600
# Maximum jitter in seconds (2 minutes)
MAX_JITTER = 120


class RedisCache:
    """
    Redis cache implementation with Cache-Aside pattern.

    Reads that fail are logged and treated as misses. Writes that fail are
    logged and reported as False. Tag flushes are the exception: a failed
    flush raises CacheError, since stale data would otherwise be served.
    """

    def __init__(
        self,
        redis_url: str,
        prefix: str = DEFAULT_PREFIX,
        default_ttl: int = DEFAULT_TTL,
        max_jitter: int = MAX_JITTER,
        client: Optional[Redis] = None,
    ) -> None:
        """
        Initialize the Redis cache.

        Args:
            redis_url: Redis connection URL.
            prefix: Namespace prepended to every key.
            default_ttl: Default TTL in seconds.
            max_jitter: Maximum jitter to add to TTL.
            client: Already connected client, mainly for tests.
        """
        self._redis_url = redis_url
        self._prefix = prefix
        self._default_ttl = default_ttl
        self._max_jitter = max_jitter
        self._redis: Optional[Redis] = client

    async def connect(self) -> None:
        """Connect to Redis."""
        self._redis = aioredis.from_url(
            self._redis_url,
            decode_responses=False,  # binary for msgpack
        )
        await self._redis.ping()
        logger.info("Connected to Redis", url=self._redis_url, prefix=self._prefix)

    async def close(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Disconnected from Redis")

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self._prefix}tag:{tag}"

    def _get_ttl_with_jitter(self, ttl: Optional[int] = None) -> int:
        """
        Calculate TTL with random jitter.

        Args:
            ttl: Base TTL in seconds. Uses default if not provided.

        Returns:
            TTL with random jitter added.
        """
        base_ttl = ttl or self._default_ttl
        return base_ttl + random.randint(0, self._max_jitter)

    @staticmethod
    def _pack(value: Any) -> bytes:
        # default=str covers Decimal and datetime values
        return msgpack.packb(value, use_bin_type=True, default=str)

    async def get(self, key: str) -> Optional[Any]:
        """
        Get a value from cache.

        Returns:
            Cached value, or None on a miss or a read error.
        """
        if not self._redis:
            logger.warning("Redis not connected, cache miss")
            return None

        try:
            data = await self._redis.get(self._key(key))
            if data is None:
                logger.debug("Cache miss", key=key)
                return None

            logger.debug("Cache hit", key=key)
            return msgpack.unpackb(data, raw=False)
        except Exception as e:
            logger.error("Cache get error", key=key, error=str(e))
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set a value in cache with TTL.

        Returns:
            True if successful, False otherwise.
        """
        if not self._redis:
            logger.warning("Redis not connected, skipping cache set")
            return False

        try:
            ttl_with_jitter = self._get_ttl_with_jitter(ttl)
            await self._redis.setex(self._key(key), ttl_with_jitter, self._pack(value))
            logger.debug("Cache set", key=key, ttl=ttl_with_jitter)
            return True
        except Exception as e:
            logger.error("Cache set error", key=key, error=str(e))
            return False

    async def forget(self, key: str) -> bool:
        if not self._redis:
            return False

        try:
            deleted = await self._redis.delete(self._key(key))
            logger.debug("Cache key forgotten", key=key, deleted=deleted)
            return deleted > 0
        except Exception as e:
            logger.error("Cache forget error", key=key, error=str(e))
            return False

    async def has(self, key: str) -> bool:
        if not self._redis:
            return False

        try:
            return await self._redis.exists(self._key(key)) > 0
        except Exception as e:
            logger.error("Cache exists error", key=key, error=str(e))
            return False

    async def flush(self) -> None:
        """Delete every key under this cache's prefix."""
        if not self._redis:
            return

        try:
            keys = [key async for key in self._redis.scan_iter(match=f"{self._prefix}*")]
            if keys:
                await self._redis.delete(*keys)
            logger.info("Cache flushed", prefix=self._prefix, deleted=len(keys))
        except Exception as e:
            logger.error("Cache flush error", prefix=self._prefix, error=str(e))

    async def remember(
        self,
        key: str,
        ttl: int,
        callback: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Return the cached value or compute, store and return it.

        None results are returned but not stored.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached

        value = await callback()
        if value is not None:
            await self.set(key, value, ttl)
        return value

    async def set_with_tags(
        self,
        tags: list[str],
        key: str,
        value: Any,
        ttl: Optional[int] = None,
    ) -> bool:
        """
        Store a value and register its key under each tag.

        Returns:
            True if successful, False otherwise.
        """
        if not self._redis:
            logger.warning("Redis not connected, skipping cache set")
            return False

        full_key = self._key(key)
        try:
            ttl_with_jitter = self._get_ttl_with_jitter(ttl)
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.setex(full_key, ttl_with_jitter, self._pack(value))
                for tag in tags:
                    tag_key = self._tag_key(tag)
                    pipe.sadd(tag_key, full_key)
                    # The index lives at least as long as its longest member.
                    pipe.expire(tag_key, ttl_with_jitter, nx=True)
                    pipe.expire(tag_key, ttl_with_jitter, gt=True)
                await pipe.execute()
            logger.debug("Cache set with tags", key=key, tags=tags, ttl=ttl_with_jitter)
            return True
        except Exception as e:
            logger.error("Cache set error", key=key, tags=tags, error=str(e))
            return False

    async def remember_with_tags(
        self,
        tags: list[str],
        key: str,
        ttl: int,
        callback: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Tagged variant of remember()."""
        cached = await self.get(key)
        if cached is not None:
            return cached

        value = await callback()
        if value is not None:
            await self.set_with_tags(tags, key, value, ttl)
        return value

    async def flush_tags(self, tags: list[str]) -> int:
        """
        Delete every key registered under any of the tags.

        Returns:
            Number of cached entries deleted.

        Raises:
            CacheError: If Redis fails during the flush.
        """
        if not self._redis:
            logger.warning("Redis not connected, nothing to flush", tags=tags)
            return 0

        try:
            deleted = 0
            for tag in tags:
                tag_key = self._tag_key(tag)
                async with self._redis.pipeline(transaction=True) as pipe:
                    pipe.smembers(tag_key)
                    pipe.delete(tag_key)
                    members, _ = await pipe.execute()
                if members:
                    deleted += await self._redis.delete(*members)
        except Exception as e:
            logger.error("Cache tag flush error", tags=tags, error=str(e))
            raise CacheError(f"Failed to flush cache tags {tags}: {e}") from e

        logger.info("Cache tags flushed", tags=tags, deleted=deleted)
        return deleted
