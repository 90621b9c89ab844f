"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing,
one per external collaborator of the page cache:

- KeyValueCache: shared cache for directory snapshots and the preloading flag
- ByteStore: file-backed store for rendered pages and dependency records
- ContentStore: source of page records
- Renderer: templating engine
- Broadcaster: cross-process publish/subscribe

Usage:
    ```python
    from wcm_cache.protocols import KeyValueCache

    cache: KeyValueCache = RedisKeyValueCache.create()  # works
    cache: KeyValueCache = InMemoryKeyValueCache()      # also works
    ```
"""

from .broadcaster import Broadcaster, MessageHandler
from .byte_store import ByteStore
from .cache_store import KeyValueCache
from .content_store import ContentStore
from .renderer import Renderer

__all__ = [
    "Broadcaster",
    "ByteStore",
    "ContentStore",
    "KeyValueCache",
    "MessageHandler",
    "Renderer",
]
