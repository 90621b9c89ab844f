"""WCM Cache - content page resolution and render caching.

Maps request paths to content pages through URI patterns, renders them
and caches the output, keeping every worker's caches in step through
broadcast invalidations.

Layers:
    - protocols: Interface contracts (KeyValueCache, ByteStore, ContentStore, Renderer, Broadcaster)
    - repositories: Redis, filesystem, HTTP, Jinja2 and in-memory implementations
    - services: Page directory, render cache, dependency index, invalidation
    - handlers: HTTP handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from wcm_cache import WcmContext, PageDirectory, Scope, settings

    context = WcmContext.create(settings)
    directory = PageDirectory.create(context)
    page_match = await directory.resolve(Scope("example.com", "default", "master"), "/blog/hello")
    ```

For HTTP API:
    ```python
    from wcm_cache.api.app import app
    ```
"""

from wcm_cache.config import Settings, configure_logging, get_redis_client, settings
from wcm_cache.context import WcmContext
from wcm_cache.entities import PageMatch, RequestDescriptor, Scope
from wcm_cache.errors import WcmError
from wcm_cache.handlers import PageHandler
from wcm_cache.matcher import match
from wcm_cache.protocols import Broadcaster, ByteStore, ContentStore, KeyValueCache, Renderer
from wcm_cache.services import InvalidationCoordinator, PageDirectory, PageService, RenderCache

__all__ = [
    # Configuration
    "Settings",
    "settings",
    "configure_logging",
    "get_redis_client",
    "WcmContext",
    # Protocols (interfaces)
    "Broadcaster",
    "ByteStore",
    "ContentStore",
    "KeyValueCache",
    "Renderer",
    # Services (business logic)
    "InvalidationCoordinator",
    "PageDirectory",
    "PageService",
    "RenderCache",
    # Handlers (HTTP)
    "PageHandler",
    # Entities (domain models)
    "PageMatch",
    "RequestDescriptor",
    "Scope",
    # Matching
    "match",
    "WcmError",
]
