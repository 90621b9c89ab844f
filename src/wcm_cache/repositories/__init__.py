"""Repository layer for data access.

This layer abstracts external collaborators (Redis, the filesystem, the
content API, the templating engine) behind protocol-based interfaces.
This enables:
- Easy swapping of implementations (Redis → in-memory, files → object storage, etc.)
- Unit testing with in-memory implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from .file_byte_store import FileByteStore
from .http_content_store import HttpContentStore
from .jinja_renderer import Jinja2Renderer
from .memory import (
    InMemoryBroadcaster,
    InMemoryByteStore,
    InMemoryContentStore,
    InMemoryKeyValueCache,
    MemoryBroadcastHub,
)
from .redis_broadcaster import RedisBroadcaster
from .redis_repository import RedisKeyValueCache

__all__ = [
    "FileByteStore",
    "HttpContentStore",
    "InMemoryBroadcaster",
    "InMemoryByteStore",
    "InMemoryContentStore",
    "InMemoryKeyValueCache",
    "Jinja2Renderer",
    "MemoryBroadcastHub",
    "RedisBroadcaster",
    "RedisKeyValueCache",
]
