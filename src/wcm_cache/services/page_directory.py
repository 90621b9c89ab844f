"""Page directory service.

Keeps the URI pattern → page mapping of every scope in the shared
key/value cache and rebuilds it from the content store when it expires.

Rebuilds are guarded by a preloading flag so that concurrent requests on
a cold cache trigger a single content store query:

1. Read the snapshot; if present, use it
2. Otherwise atomically set the preloading flag (set-if-absent, short TTL)
3. The worker that set the flag rebuilds, writes the snapshot and clears
   the flag on both success and failure
4. Everyone else waits a short interval and starts over, up to a deadline

The flag's TTL bounds how long a crashed loader can block the others.
"""

import asyncio
import contextlib

from loguru import logger

from wcm_cache.context import WcmContext
from wcm_cache.entities import (
    DirectorySnapshot,
    Page,
    PageMatch,
    Scope,
    branch_directory_pattern,
    host_directory_pattern,
)
from wcm_cache.errors import DirectoryLoadError, DirectoryLoadTimeout, StoreError, TemplateNotFoundError
from wcm_cache.protocols import ContentStore, KeyValueCache

from .page_resolver import PageResolver

PAGE_TYPE = "wcm:page"


class PageDirectory:
    """Loads, caches and resolves page definitions per scope.

    Example:
        ```python
        directory = PageDirectory.create(context)
        page_match = await directory.resolve(scope, "/blog/hello-world")
        if page_match:
            print(page_match.page.id, page_match.tokens)
        ```
    """

    def __init__(
        self,
        cache: KeyValueCache,
        content_store: ContentStore,
        resolver: PageResolver | None = None,
        ttl: int = 120,
        preload_flag_ttl: int = 30,
        preload_wait_ms: int = 500,
        preload_deadline: float = 60.0,
    ) -> None:
        """Initialize the page directory.

        Args:
            cache: Shared key/value cache holding snapshots and the preloading flag
            content_store: Source of page records
            resolver: Page selection strategy. Defaults to PageResolver.
            ttl: Snapshot time-to-live in seconds
            preload_flag_ttl: Preloading flag time-to-live in seconds
            preload_wait_ms: Wait between attempts while another worker loads
            preload_deadline: Overall wait bound in seconds
        """
        self._cache = cache
        self._content_store = content_store
        self._resolver = resolver or PageResolver()
        self._ttl = ttl
        self._flag_ttl = preload_flag_ttl
        self._wait = preload_wait_ms / 1000
        self._deadline = preload_deadline
        # rebuilds finishing in this process wake local waiters early
        self._loaded: dict[str, asyncio.Event] = {}

    @classmethod
    def create(cls, context: WcmContext) -> "PageDirectory":
        """Factory method to create PageDirectory from the process context."""
        config = context.settings
        return cls(
            cache=context.cache,
            content_store=context.content_store,
            ttl=config.directory_ttl,
            preload_flag_ttl=config.preload_flag_ttl,
            preload_wait_ms=config.preload_wait_ms,
            preload_deadline=config.preload_deadline,
        )

    async def resolve(self, scope: Scope, offset_path: str, invalidate: bool = False) -> PageMatch | None:
        """Find the page answering a request path.

        Args:
            scope: Host/repository/branch of the request
            offset_path: The request path
            invalidate: Discard the current snapshot first

        Returns:
            PageMatch, or None if no page matches

        Raises:
            DirectoryLoadError: If the directory had to be rebuilt and the rebuild failed
            DirectoryLoadTimeout: If another worker's rebuild did not finish in time
        """
        snapshot = await self.load(scope, invalidate=invalidate)
        return self._resolver.find_matching_page(snapshot, offset_path)

    async def load(self, scope: Scope, invalidate: bool = False) -> DirectorySnapshot:
        """Read the scope's snapshot, rebuilding it if needed."""
        slot = scope.directory_key
        if invalidate:
            await self._cache.remove(slot)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._deadline

        while True:
            cached = await self._cache.read(slot)
            if cached is not None:
                return DirectorySnapshot.from_dict(cached)

            if await self._cache.add(scope.preloading_key, True, self._flag_ttl):
                return await self._preload(scope)

            if loop.time() >= deadline:
                raise DirectoryLoadTimeout(
                    f"Gave up waiting on another worker loading pages for {slot}"
                )

            logger.info(f"Another worker is currently preloading pages, waiting {int(self._wait * 1000)} ms")
            await self._wait_for_load(slot)

    async def _wait_for_load(self, slot: str) -> None:
        event = self._loaded.get(slot)
        if event is None:
            await asyncio.sleep(self._wait)
            return
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(event.wait(), self._wait)

    async def _preload(self, scope: Scope) -> DirectorySnapshot:
        slot = scope.directory_key
        event = self._loaded.setdefault(slot, asyncio.Event())
        try:
            # another worker may have finished between our read and setting the flag
            cached = await self._cache.read(slot)
            if cached is not None:
                return DirectorySnapshot.from_dict(cached)

            logger.info(f"Loading Web Pages into cache for {slot}")
            snapshot = await self._rebuild(scope)
            for pattern in snapshot.patterns:
                logger.info(f"Loaded Web Page -> {pattern}")

            await self._cache.write(slot, snapshot.to_dict(), self._ttl)
            return snapshot
        except (DirectoryLoadError, StoreError) as e:
            logger.error(f"Error while loading web pages: {e}")
            raise
        finally:
            await self._cache.remove(scope.preloading_key)
            event.set()
            self._loaded.pop(slot, None)

    async def _rebuild(self, scope: Scope) -> DirectorySnapshot:
        """Query every page record and bind it under each of its URIs."""
        try:
            records = await self._content_store.query_nodes(scope, {"_type": PAGE_TYPE}, limit=-1)
        except StoreError as e:
            raise DirectoryLoadError(f"Failed to query pages: {e}") from e

        candidates = [page for page in map(Page.from_record, records) if page.template and page.uris]
        resolved = await asyncio.gather(
            *(self._resolve_template(scope, page) for page in candidates),
            return_exceptions=True,
        )

        pages: dict[str, Page] = {}
        for candidate, result in zip(candidates, resolved):
            if isinstance(result, TemplateNotFoundError):
                logger.warning(f"Skipping page {candidate.id}: {result}")
                continue
            if isinstance(result, BaseException):
                raise result
            for uri in result.uris:
                pages[uri] = result

        return DirectorySnapshot.from_pages(pages, ttl=self._ttl)

    async def _resolve_template(self, scope: Scope, page: Page) -> Page:
        """Turn the page's template reference into a template path.

        A reference containing ``/`` is a path already; anything else is
        the identifier of a template record carrying a ``path`` field.
        """
        if page.template_is_path:
            return page.with_template_path(page.template)

        try:
            template = await self._content_store.read_node(scope, page.template)
        except StoreError as e:
            raise DirectoryLoadError(f"Failed to read template {page.template}: {e}") from e

        if not template or not template.get("path"):
            raise TemplateNotFoundError(f"Template {page.template} not found or has no path")

        return page.with_template_path(template["path"])

    async def invalidate(self, scope: Scope) -> None:
        """Discard the snapshot of one scope."""
        await self._cache.remove(scope.directory_key)

    async def invalidate_branch(self, repository_id: str, branch_id: str) -> int:
        """Discard the snapshots of every host serving a repository/branch.

        Returns:
            Number of snapshots discarded
        """
        return await self._cache.remove_matching(branch_directory_pattern(repository_id, branch_id))

    async def invalidate_host(self, host: str) -> int:
        """Discard every snapshot of a host.

        Returns:
            Number of snapshots discarded
        """
        def same_host(key: str) -> bool:
            scope = Scope.from_directory_key(key)
            return scope is not None and scope.host == host

        return await self._cache.remove_matching(host_directory_pattern(host), same_host)

    @property
    def ttl(self) -> int:
        return self._ttl
