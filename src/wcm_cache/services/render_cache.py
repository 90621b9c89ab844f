"""Render cache service.

Stores rendered page output in the byte store, addressed by the hash of
the request descriptor:

    wcm/repositories/{repo}/branches/{branch}/pages/{cacheKey}/page.html
    wcm/repositories/{repo}/branches/{branch}/pages/{cacheKey}/entry.json

``entry.json`` records when the page was cached and which dependency
keys it was linked under, so entries can expire and be evicted cleanly.

The cache is a production-only optimization: when disabled, reads
report absent without touching storage and writes do nothing.
"""

import json
import time
from typing import Any

from loguru import logger

from wcm_cache.context import WcmContext
from wcm_cache.entities import RequestDescriptor, Scope
from wcm_cache.errors import StoreError
from wcm_cache.protocols import ByteStore

from .dependency_index import DependencyIndex

PAGE_FILE = "page.html"
ENTRY_FILE = "entry.json"


class RenderCache:
    """Descriptor-addressed storage of rendered pages."""

    def __init__(
        self,
        byte_store: ByteStore,
        dependency_index: DependencyIndex,
        enabled: bool = False,
        ttl: int = 86400,
    ) -> None:
        """Initialize the render cache.

        Args:
            byte_store: Shared byte store
            dependency_index: Index updated alongside every write
            enabled: Whether caching is active
            ttl: Entry time-to-live in seconds
        """
        self._store = byte_store
        self._dependencies = dependency_index
        self._enabled = enabled
        self._ttl = ttl

    @classmethod
    def create(cls, context: WcmContext, dependency_index: DependencyIndex) -> "RenderCache":
        """Factory method to create RenderCache from the process context."""
        return cls(
            byte_store=context.byte_store,
            dependency_index=dependency_index,
            enabled=context.settings.page_cache_enabled,
            ttl=context.settings.page_cache_ttl,
        )

    @staticmethod
    def entry_directory(scope: Scope, cache_key: str) -> str:
        return f"{scope.storage_prefix}/pages/{cache_key}"

    async def _read_entry(self, scope: Scope, cache_key: str) -> dict[str, Any] | None:
        raw = await self._store.read_file(f"{self.entry_directory(scope, cache_key)}/{ENTRY_FILE}")
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding unreadable render cache entry {cache_key}")
            return None

    async def read(self, scope: Scope, descriptor: RequestDescriptor) -> bytes | None:
        """Read the cached output for a descriptor.

        Store failures are reported as a miss.

        Args:
            scope: Repository/branch of the request
            descriptor: The request descriptor

        Returns:
            The cached bytes, or None if absent, expired or caching is disabled
        """
        if not self._enabled:
            return None

        cache_key = descriptor.cache_key
        directory = self.entry_directory(scope, cache_key)
        try:
            entry = await self._read_entry(scope, cache_key)
            if entry is None:
                return None

            if time.time() - float(entry.get("cachedAt", 0)) > self._ttl:
                await self.evict(scope, cache_key)
                return None

            if not await self._store.exists_file(f"{directory}/{PAGE_FILE}"):
                return None

            chunks = [chunk async for chunk in self._store.read_stream(f"{directory}/{PAGE_FILE}")]
        except StoreError as e:
            logger.warning(f"Render cache read failed for {descriptor.path}: {e}")
            return None

        return b"".join(chunks)

    async def write(
        self,
        scope: Scope,
        descriptor: RequestDescriptor,
        data: bytes,
        dependencies: set[str] | frozenset[str] | None = None,
    ) -> bool:
        """Store rendered output and link it to its dependencies.

        A failure to write the dependency links is logged and otherwise
        ignored; the entry then only leaves the cache by expiring.

        Args:
            scope: Repository/branch of the request
            descriptor: The request descriptor
            data: Rendered output
            dependencies: Data keys the output depends on

        Returns:
            True if the entry was written, False if caching is disabled

        Raises:
            StoreError: If the page itself cannot be written
        """
        if not self._enabled:
            return False

        cache_key = descriptor.cache_key
        directory = self.entry_directory(scope, cache_key)
        dependencies = set(dependencies or ())

        await self._store.write_file(f"{directory}/{PAGE_FILE}", data)
        entry = {
            "cacheKey": cache_key,
            "path": descriptor.path,
            "cachedAt": time.time(),
            "dependencies": sorted(dependencies),
        }
        await self._store.write_file(f"{directory}/{ENTRY_FILE}", json.dumps(entry).encode("utf-8"))

        if dependencies:
            try:
                await self._dependencies.record(scope, descriptor, dependencies)
            except StoreError as e:
                logger.warning(f"Failed to record dependencies of {descriptor.path}: {e}")

        return True

    async def evict(self, scope: Scope, cache_key: str) -> bool:
        """Remove one entry and its dependency links.

        Returns:
            True if a cached page was removed
        """
        directory = self.entry_directory(scope, cache_key)
        entry = await self._read_entry(scope, cache_key)

        removed = await self._store.delete_file(f"{directory}/{PAGE_FILE}")
        await self._store.delete_file(f"{directory}/{ENTRY_FILE}")

        if entry and entry.get("dependencies"):
            await self._dependencies.remove(scope, cache_key, entry["dependencies"])

        return removed

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def ttl(self) -> int:
        return self._ttl
