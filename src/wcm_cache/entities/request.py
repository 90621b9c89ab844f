"""Page request and response domain entities."""

from dataclasses import dataclass, field

from .descriptor import RequestDescriptor
from .page import PageMatch
from .scope import Scope


@dataclass(frozen=True)
class PageRequest:
    """A request offered to the page pipeline, independent of the web framework.

    Attributes:
        scope: Host/repository/branch of the request
        protocol: Request scheme
        path: Offset path
        params: Query parameters (multi-valued)
        headers: Request headers
        invalidate: Discard the page directory snapshot before resolving
    """

    scope: Scope
    protocol: str
    path: str
    params: dict[str, list[str]] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    invalidate: bool = False


@dataclass(frozen=True)
class ServedPage:
    """A page produced by the pipeline.

    Attributes:
        body: The rendered markup
        page_match: The page that answered the request
        descriptor: Descriptor the output is cached under
        cached: True if the body came from the render cache
    """

    body: bytes
    page_match: PageMatch
    descriptor: RequestDescriptor
    cached: bool = False
