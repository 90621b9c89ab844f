"""Service layer for business logic.

Services depend on protocols (interfaces), not concrete implementations,
and receive their collaborators from the process context.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from wcm_cache.services import DependencyIndex, PageDirectory, PageService, RenderCache

    directory = PageDirectory.create(context)
    dependency_index = DependencyIndex.create(context)
    render_cache = RenderCache.create(context, dependency_index)
    pages = PageService.create(context, directory, render_cache)
    ```
"""

from .dependency_index import DependencyIndex
from .invalidation import MODULE_INVALIDATION_TOPIC, NODE_INVALIDATION_TOPIC, InvalidationCoordinator
from .module_service import ModuleService, validate_source
from .page_directory import PAGE_TYPE, PageDirectory
from .page_resolver import PageResolver
from .page_service import PageService
from .render_cache import RenderCache

__all__ = [
    "DependencyIndex",
    "InvalidationCoordinator",
    "MODULE_INVALIDATION_TOPIC",
    "ModuleService",
    "NODE_INVALIDATION_TOPIC",
    "PAGE_TYPE",
    "PageDirectory",
    "PageResolver",
    "PageService",
    "RenderCache",
    "validate_source",
]
