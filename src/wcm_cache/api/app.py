from fastapi import FastAPI, Query

from wcm_cache.api.dependencies import ContextDep, HostDep, InvalidationHandlerDep, ModuleHandlerDep, lifespan
from wcm_cache.api.middleware import PageMiddleware
from wcm_cache.config import Settings, settings
from wcm_cache.context import WcmContext
from wcm_cache.dto import (
    HealthCheckResponse,
    InvalidationResponse,
    ModuleCommandRequest,
    ModuleCommandResponse,
    NodeInvalidationRequest,
)


def create_app(context: WcmContext | None = None, config: Settings | None = None) -> FastAPI:
    """Build the application.

    Args:
        context: Pre-built context to serve with (closed on shutdown)
        config: Settings used to build a context when none is given

    Returns:
        FastAPI app; pages are served for every unrouted GET path
    """
    app = FastAPI(
        title="WCM Page Cache",
        description="Content page resolution and render caching",
        version="0.1.0",
        lifespan=lifespan,
    )
    if context is not None:
        app.state.context = context
    if config is not None:
        app.state.settings = config

    app.add_middleware(PageMiddleware)

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(context: ContextDep) -> HealthCheckResponse:
        """Health check endpoint."""
        is_healthy = await context.cache.health_check()
        return HealthCheckResponse(
            status="healthy" if is_healthy else "unhealthy",
            cache_healthy=is_healthy,
            worker_id=context.settings.worker_id,
        )

    @app.post("/_modules/_deploy", response_model=ModuleCommandResponse, response_model_exclude_none=True)
    async def deploy_module(
        handler: ModuleHandlerDep,
        module_host: HostDep,
        module_id: str = Query(..., alias="id"),
        request: ModuleCommandRequest | None = None,
    ) -> ModuleCommandResponse:
        return await handler.deploy(module_host, module_id, request)

    @app.post("/_modules/_undeploy", response_model=ModuleCommandResponse, response_model_exclude_none=True)
    async def undeploy_module(
        handler: ModuleHandlerDep,
        module_host: HostDep,
        module_id: str = Query(..., alias="id"),
    ) -> ModuleCommandResponse:
        return await handler.undeploy(module_host, module_id)

    @app.post("/_modules/_redeploy", response_model=ModuleCommandResponse, response_model_exclude_none=True)
    async def redeploy_module(
        handler: ModuleHandlerDep,
        module_host: HostDep,
        module_id: str = Query(..., alias="id"),
        request: ModuleCommandRequest | None = None,
    ) -> ModuleCommandResponse:
        return await handler.redeploy(module_host, module_id, request)

    @app.post("/_modules/_refresh", response_model=ModuleCommandResponse, response_model_exclude_none=True)
    async def refresh_modules(
        handler: ModuleHandlerDep,
        module_host: HostDep,
        module_id: str = Query(..., alias="id"),
    ) -> ModuleCommandResponse:
        return await handler.refresh(module_host, module_id)

    @app.post("/_wcm/_invalidate", response_model=InvalidationResponse)
    async def invalidate_node(
        request: NodeInvalidationRequest,
        handler: InvalidationHandlerDep,
    ) -> InvalidationResponse:
        """Apply a content edit on this worker and broadcast it to the others."""
        return await handler.invalidate(request)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "wcm_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
