"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - The WcmContext is created (or injected) and started in the lifespan
    - Services and handlers are stored in app.state
    - Dependency functions retrieve them from request.app.state
"""

from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from loguru import logger

from wcm_cache.config import configure_logging, get_settings
from wcm_cache.context import WcmContext
from wcm_cache.handlers import InvalidationHandler, ModuleHandler, PageHandler, request_host
from wcm_cache.services import (
    DependencyIndex,
    InvalidationCoordinator,
    ModuleService,
    PageDirectory,
    PageService,
    RenderCache,
)


def _from_state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise RuntimeError(f"{name} not initialized. Check lifespan setup.")
    return value


def get_context(request: Request) -> WcmContext:
    """Dependency injection for the WcmContext from app.state."""
    return _from_state(request, "context")


def get_module_handler(request: Request) -> ModuleHandler:
    """Dependency injection for ModuleHandler from app.state."""
    return _from_state(request, "module_handler")


def get_invalidation_handler(request: Request) -> InvalidationHandler:
    """Dependency injection for InvalidationHandler from app.state."""
    return _from_state(request, "invalidation_handler")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Builds every layer and stores it in app.state:
    1. Context (configuration and external collaborators), unless one was
       injected through ``app.state.context``
    2. Services (page directory, render cache, invalidation, modules)
    3. Handlers (page serving, module commands, invalidation)

    Subscriptions are bound before the context starts delivering
    broadcasts. On shutdown the context is closed and app.state cleared.
    """
    context = getattr(app.state, "context", None)
    if context is None:
        config = getattr(app.state, "settings", None) or get_settings()
        configure_logging(config.log_level)
        context = WcmContext.create(config)
    config = context.settings

    directory = PageDirectory.create(context)
    dependency_index = DependencyIndex.create(context)
    render_cache = RenderCache.create(context, dependency_index)
    coordinator = InvalidationCoordinator.create(context, directory, render_cache, dependency_index)
    page_service = PageService.create(context, directory, render_cache)
    module_service = ModuleService(coordinator=coordinator)

    coordinator.bind_subscriptions()
    await context.start()

    app.state.context = context
    app.state.page_directory = directory
    app.state.render_cache = render_cache
    app.state.coordinator = coordinator
    app.state.page_service = page_service
    app.state.page_handler = PageHandler(page_service=page_service, config=config)
    app.state.module_handler = ModuleHandler(module_service=module_service)
    app.state.invalidation_handler = InvalidationHandler(coordinator=coordinator)

    logger.info(
        f"WCM started: mode={config.appserver_mode}, backend={config.backend}, "
        f"page cache {'on' if render_cache.enabled else 'off'}, directory ttl={directory.ttl}s"
    )

    yield

    await context.close()
    for name in (
        "invalidation_handler",
        "module_handler",
        "page_handler",
        "page_service",
        "coordinator",
        "render_cache",
        "page_directory",
        "context",
    ):
        delattr(app.state, name)
    logger.info("WCM shut down")


# Type aliases for cleaner dependency injection
ContextDep = Annotated[WcmContext, Depends(get_context)]
ModuleHandlerDep = Annotated[ModuleHandler, Depends(get_module_handler)]
InvalidationHandlerDep = Annotated[InvalidationHandler, Depends(get_invalidation_handler)]
HostDep = Annotated[str, Depends(request_host)]
