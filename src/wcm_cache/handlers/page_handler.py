"""HTTP handler for content pages.

Translates a Starlette request into a PageRequest and the pipeline's
outcome into a response. ``None`` means the request is not a page and
belongs to the next handler.
"""

from fastapi import status
from fastapi.responses import JSONResponse, Response
from loguru import logger
from starlette.requests import Request

from wcm_cache.config import Settings
from wcm_cache.entities import PageRequest, Scope
from wcm_cache.errors import RenderError
from wcm_cache.services import PageService

TRUTHY = frozenset({"1", "true", "yes", "on"})


def request_host(request: Request) -> str:
    """Host a request was addressed to, as seen behind proxies.

    For localhost the Host header is kept whole, port included, so that
    local instances on different ports stay apart.
    """
    headers = request.headers
    host = headers.get("x-forwarded-host")
    if host:
        return host
    host = request.url.hostname or headers.get("host", "")
    if host == "localhost":
        return headers.get("host", host)
    return host


def raw_request_path(request: Request) -> str:
    """Request path exactly as received, percent-encoding intact."""
    raw_path = request.scope.get("raw_path")
    if not raw_path:
        return request.url.path
    return raw_path.decode("latin-1").split("?", 1)[0]


class PageHandler:
    """Serves content pages for otherwise unclaimed GET requests.

    Example:
        ```python
        handler = PageHandler(page_service=pages, config=settings)
        response = await handler.handle(request)
        if response is None:
            response = await call_next(request)
        ```
    """

    def __init__(self, page_service: PageService, config: Settings) -> None:
        """Initialize the page handler.

        Args:
            page_service: The page pipeline
            config: Settings supplying the default repository and branch
        """
        self._pages = page_service
        self._config = config

    def scope_from_request(self, request: Request) -> Scope:
        """Derive host/repository/branch from the request headers."""
        headers = request.headers
        return Scope(
            host=request_host(request),
            repository_id=headers.get("x-repository-id") or self._config.repository_id,
            branch_id=headers.get("x-branch-id") or self._config.branch_id,
        )

    def page_request(self, request: Request) -> PageRequest:
        """Build the pipeline input. Tokens are decoded by the matcher, so the path stays percent-encoded."""
        params: dict[str, list[str]] = {}
        for key, value in request.query_params.multi_items():
            params.setdefault(key, []).append(value)

        invalidate = request.query_params.get("invalidate", "").lower() in TRUTHY
        return PageRequest(
            scope=self.scope_from_request(request),
            protocol=request.headers.get("x-forwarded-proto") or request.url.scheme,
            path=raw_request_path(request),
            params=params,
            headers=dict(request.headers),
            invalidate=invalidate,
        )

    async def handle(self, request: Request) -> Response | None:
        """Handle a GET request not claimed by any route.

        Returns:
            The page response, or None to pass the request on
        """
        page_request = self.page_request(request)
        try:
            served = await self._pages.serve(page_request)
        except RenderError as e:
            logger.error(f"Failed to render {page_request.path}: {e}")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"detail": str(e)},
            )

        if served is None:
            return None

        return Response(content=served.body, status_code=status.HTTP_200_OK, media_type="text/html")
