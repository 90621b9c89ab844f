"""Handler layer for HTTP endpoints.

This layer contains the HTTP request/response handlers.
Handlers depend on services (business logic), not directly on repositories.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .invalidation_handler import InvalidationHandler
from .module_handler import ModuleHandler
from .page_handler import PageHandler, request_host

__all__ = [
    "InvalidationHandler",
    "ModuleHandler",
    "PageHandler",
    "request_host",
]
