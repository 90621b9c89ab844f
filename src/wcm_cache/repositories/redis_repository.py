"""Redis implementation of KeyValueCache.

Values are stored as JSON strings with a per-key expiry. The
set-if-absent operation maps to ``SET NX EX``, which makes the
preloading flag an atomic compare-and-set across all workers.
"""

import json
from collections.abc import Callable
from typing import Any

import redis.asyncio as redis

from wcm_cache.config import get_redis_client
from wcm_cache.errors import StoreError


class RedisKeyValueCache:
    """Redis implementation of the KeyValueCache protocol.

    This class satisfies the KeyValueCache protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        """Initialize the Redis cache.

        Args:
            redis_client: Redis client instance. If None, creates default.
        """
        self._client = redis_client or get_redis_client()

    @classmethod
    def create(cls, redis_client: redis.Redis | None = None) -> "RedisKeyValueCache":
        """Factory method to create RedisKeyValueCache with defaults."""
        return cls(redis_client=redis_client)

    async def read(self, key: str) -> Any | None:
        """Read a JSON value.

        Args:
            key: The cache key

        Returns:
            The decoded value, or None if absent

        Raises:
            StoreError: If Redis is unreachable
        """
        try:
            raw = await self._client.get(key)
        except redis.RedisError as e:
            raise StoreError(f"Redis read failed for {key}: {e}") from e

        if raw is None:
            return None
        return json.loads(raw)

    async def write(self, key: str, value: Any, ttl: int) -> None:
        """Write a JSON value with an expiry."""
        try:
            await self._client.set(key, json.dumps(value), ex=ttl)
        except redis.RedisError as e:
            raise StoreError(f"Redis write failed for {key}: {e}") from e

    async def add(self, key: str, value: Any, ttl: int) -> bool:
        """Write a JSON value only if the key does not exist yet.

        Returns:
            True if the key was newly set
        """
        try:
            result = await self._client.set(key, json.dumps(value), ex=ttl, nx=True)
        except redis.RedisError as e:
            raise StoreError(f"Redis add failed for {key}: {e}") from e
        return bool(result)

    async def remove(self, key: str) -> None:
        """Delete a key."""
        try:
            await self._client.delete(key)
        except redis.RedisError as e:
            raise StoreError(f"Redis delete failed for {key}: {e}") from e

    async def remove_matching(self, pattern: str, predicate: Callable[[str], bool] | None = None) -> int:
        """Delete every key matching a glob pattern and, if given, the predicate.

        Returns:
            Number of keys deleted
        """
        count = 0
        try:
            async for key in self._client.scan_iter(match=pattern):
                name = key.decode() if isinstance(key, bytes) else key
                if predicate is not None and not predicate(name):
                    continue
                count += await self._client.delete(key)
        except redis.RedisError as e:
            raise StoreError(f"Redis scan failed for {pattern}: {e}") from e
        return count

    async def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(await self._client.ping())
        except redis.RedisError:
            return False

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._client.aclose()

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
