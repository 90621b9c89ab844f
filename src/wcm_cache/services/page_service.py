"""Page serving pipeline.

resolve page → build descriptor → render cache lookup → render → cache write

Resolution problems never surface as errors: the request is simply not
handled and falls through to whatever comes next. Render failures do
surface, as they mean a page exists but cannot be produced.
"""

from loguru import logger

from wcm_cache.context import WcmContext
from wcm_cache.entities import PageRequest, RequestDescriptor, ServedPage
from wcm_cache.errors import RenderError, StoreError, WcmError
from wcm_cache.protocols import Renderer

from .page_directory import PageDirectory
from .render_cache import RenderCache


class PageService:
    """Serves content pages from the page directory and the render cache.

    Example:
        ```python
        service = PageService.create(context, directory, render_cache)
        served = await service.serve(page_request)
        if served is None:
            ...  # not a page, hand the request on
        ```
    """

    def __init__(
        self,
        directory: PageDirectory,
        render_cache: RenderCache,
        renderer: Renderer,
        cache_headers: tuple[str, ...] = (),
        enabled: bool = True,
    ) -> None:
        """Initialize the page service.

        Args:
            directory: Page directory used to resolve paths
            render_cache: Cache of rendered output
            renderer: Templating engine
            cache_headers: Request headers that take part in the cache key
            enabled: When False, no request is handled
        """
        self._directory = directory
        self._render_cache = render_cache
        self._renderer = renderer
        self._cache_headers = cache_headers
        self._enabled = enabled

    @classmethod
    def create(cls, context: WcmContext, directory: PageDirectory, render_cache: RenderCache) -> "PageService":
        """Factory method to create PageService from the process context."""
        return cls(
            directory=directory,
            render_cache=render_cache,
            renderer=context.renderer,
            cache_headers=context.settings.cache_headers,
            enabled=context.settings.wcm_enabled,
        )

    async def serve(self, request: PageRequest) -> ServedPage | None:
        """Produce the page answering a request.

        Args:
            request: The incoming page request

        Returns:
            ServedPage, or None if no page answers the request

        Raises:
            RenderError: If the matched page fails to render
        """
        if not self._enabled:
            return None

        try:
            page_match = await self._directory.resolve(request.scope, request.path, invalidate=request.invalidate)
        except WcmError as e:
            logger.warning(f"Page resolution failed for {request.path}, not handling request: {e}")
            return None

        if page_match is None:
            return None

        descriptor = RequestDescriptor.create(
            protocol=request.protocol,
            host=request.scope.host,
            path=request.path,
            params=request.params,
            headers=request.headers,
            page_match=page_match,
            allowed_headers=self._cache_headers,
        )

        cached = await self._render_cache.read(request.scope, descriptor)
        if cached is not None:
            logger.info(f"WCM Page Cache Hit: {descriptor.url}")
            return ServedPage(body=cached, page_match=page_match, descriptor=descriptor, cached=True)

        template_path = page_match.page.template_path
        if not template_path:
            raise RenderError(page_match.page.template, "page has no resolved template path")

        result = await self._renderer.render(template_path, page_match.render_model())
        body = result.text.encode("utf-8")
        dependencies = set(result.dependencies) | {page_match.page.id}

        try:
            await self._render_cache.write(request.scope, descriptor, body, dependencies)
        except StoreError as e:
            logger.error(f"Failed to cache {descriptor.url}: {e}")

        return ServedPage(body=body, page_match=page_match, descriptor=descriptor)
