"""Dependency index service.

Links data keys (content record ids, or anything a template declared)
to the render cache entries whose output they influenced. Each link is
one small JSON file:

    wcm/repositories/{repo}/branches/{branch}/dependencies/{sha1(key)}/{cacheKey}.json

so that looking up a key is a single directory listing. The index is
written when a page is rendered and read only during invalidation.
"""

import hashlib
import json

from wcm_cache.context import WcmContext
from wcm_cache.entities import RequestDescriptor, Scope
from wcm_cache.protocols import ByteStore

LINK_SUFFIX = ".json"


class DependencyIndex:
    """Records and looks up dependency → cache entry links."""

    def __init__(self, byte_store: ByteStore) -> None:
        """Initialize the dependency index.

        Args:
            byte_store: Shared byte store the links are written to
        """
        self._store = byte_store

    @classmethod
    def create(cls, context: WcmContext) -> "DependencyIndex":
        """Factory method to create DependencyIndex from the process context."""
        return cls(byte_store=context.byte_store)

    @staticmethod
    def _key_directory(scope: Scope, key: str) -> str:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return f"{scope.storage_prefix}/dependencies/{digest}"

    async def record(self, scope: Scope, descriptor: RequestDescriptor, dependencies: set[str] | frozenset[str]) -> int:
        """Link every dependency key to the descriptor's cache entry.

        Args:
            scope: Repository/branch of the entry
            descriptor: Descriptor of the rendered request
            dependencies: Data keys the output depends on

        Returns:
            Number of links written

        Raises:
            StoreError: If a link cannot be written
        """
        cache_key = descriptor.cache_key
        for key in sorted(dependencies):
            link = {"key": key, "cacheKey": cache_key, "path": descriptor.path}
            await self._store.write_file(
                f"{self._key_directory(scope, key)}/{cache_key}{LINK_SUFFIX}",
                json.dumps(link).encode("utf-8"),
            )
        return len(dependencies)

    async def lookup(self, scope: Scope, key: str) -> set[str]:
        """Find the cache entries depending on a data key.

        Args:
            scope: Repository/branch to look in
            key: The changed data key

        Returns:
            Cache keys of the affected entries
        """
        names = await self._store.list_files(self._key_directory(scope, key))
        return {name.removesuffix(LINK_SUFFIX) for name in names if name.endswith(LINK_SUFFIX)}

    async def remove(self, scope: Scope, cache_key: str, dependencies: list[str] | set[str]) -> int:
        """Delete the links of one cache entry.

        Returns:
            Number of links deleted
        """
        count = 0
        for key in dependencies:
            if await self._store.delete_file(f"{self._key_directory(scope, key)}/{cache_key}{LINK_SUFFIX}"):
                count += 1
        return count
