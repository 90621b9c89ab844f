"""Key/value cache protocol.

Defines the interface for the shared cache holding page directory
snapshots and the preloading flag. The cache must be reachable by every
worker process, so the default implementation is Redis.

Implementations can include:
- Redis (default)
- An in-memory dictionary (single process, development and tests)
- Memcached, or any store with expiring keys and set-if-absent
"""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class KeyValueCache(Protocol):
    """Protocol for shared key/value caches with expiring entries.

    Keys are plain strings scoped by convention
    (``wcm:{host}:{repository}:{branch}:...``). Values are JSON-serializable.

    Example:
        ```python
        from wcm_cache.protocols import KeyValueCache

        cache: KeyValueCache = RedisKeyValueCache.create()
        cache: KeyValueCache = InMemoryKeyValueCache()
        ```
    """

    async def read(self, key: str) -> Any | None:
        """Read a value.

        Args:
            key: The cache key

        Returns:
            The stored value, or None if absent or expired
        """
        ...

    async def write(self, key: str, value: Any, ttl: int) -> None:
        """Write a value, replacing any existing one.

        Args:
            key: The cache key
            value: JSON-serializable value
            ttl: Time-to-live in seconds
        """
        ...

    async def add(self, key: str, value: Any, ttl: int) -> bool:
        """Atomically write a value only if the key is absent.

        Args:
            key: The cache key
            value: JSON-serializable value
            ttl: Time-to-live in seconds

        Returns:
            True if the value was newly set, False if the key already existed
        """
        ...

    async def remove(self, key: str) -> None:
        """Remove a key (no-op if absent)."""
        ...

    async def remove_matching(self, pattern: str, predicate: Callable[[str], bool] | None = None) -> int:
        """Remove every key matching a glob pattern.

        Args:
            pattern: Glob pattern (``*`` wildcards)
            predicate: Optional check every matched key must also pass

        Returns:
            Number of keys removed
        """
        ...

    async def health_check(self) -> bool:
        """Check if the cache is reachable.

        Returns:
            True if healthy, False otherwise
        """
        ...
