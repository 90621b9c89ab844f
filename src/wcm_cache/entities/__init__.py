"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services
and repositories. They are NOT used for API contracts - use DTOs
from the dto package for that.

Entities should have:
- No Pydantic validation
- No external dependencies
- Pure domain logic only
"""

from .descriptor import RequestDescriptor
from .invalidation import MODULE_COMMANDS, ModuleInvalidation, NodeInvalidation
from .module import SOURCE_TYPES, ModuleSource
from .page import Page, PageMatch, PageView
from .render import RenderResult
from .request import PageRequest, ServedPage
from .scope import Scope, branch_directory_pattern, escape_glob, host_directory_pattern
from .snapshot import DirectorySnapshot

__all__ = [
    "DirectorySnapshot",
    "MODULE_COMMANDS",
    "ModuleInvalidation",
    "ModuleSource",
    "NodeInvalidation",
    "Page",
    "PageMatch",
    "PageRequest",
    "PageView",
    "RenderResult",
    "RequestDescriptor",
    "SOURCE_TYPES",
    "Scope",
    "ServedPage",
    "branch_directory_pattern",
    "escape_glob",
    "host_directory_pattern",
]
