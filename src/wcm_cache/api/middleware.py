"""Page serving middleware.

Content pages live at arbitrary paths, so they cannot be declared as
routes. This middleware offers every GET request that no route claims
to the page handler, and passes it down the chain when no page answers.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.routing import Match


class PageMiddleware(BaseHTTPMiddleware):
    """Serves content pages ahead of the 404 fallback."""

    @staticmethod
    def _claimed_by_route(request: Request) -> bool:
        for route in request.app.router.routes:
            matched, _ = route.matches(request.scope)
            if matched == Match.FULL:
                return True
        return False

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method != "GET" or self._claimed_by_route(request):
            return await call_next(request)

        # set during lifespan startup
        handler = getattr(request.app.state, "page_handler", None)
        if handler is None:
            return await call_next(request)

        response = await handler.handle(request)
        if response is None:
            return await call_next(request)
        return response
