"""Process context shared by every WCM component.

One ``WcmContext`` is created when the process starts and closed when it
stops. It carries the configuration snapshot and the handles on every
external collaborator; services receive it (or parts of it) at
construction instead of reaching for process globals.
"""

from dataclasses import dataclass

from loguru import logger

from wcm_cache.config import Settings, get_redis_client
from wcm_cache.protocols import Broadcaster, ByteStore, ContentStore, KeyValueCache, Renderer
from wcm_cache.repositories import (
    FileByteStore,
    HttpContentStore,
    InMemoryBroadcaster,
    InMemoryContentStore,
    InMemoryKeyValueCache,
    Jinja2Renderer,
    RedisBroadcaster,
    RedisKeyValueCache,
)


@dataclass
class WcmContext:
    """Configuration plus external collaborators of one worker process.

    Attributes:
        settings: Configuration snapshot
        cache: Shared key/value cache (directory snapshots, preloading flag)
        byte_store: Shared byte store (rendered pages, dependency records)
        content_store: Source of page records
        renderer: Templating engine
        broadcaster: Cross-process publish/subscribe
    """

    settings: Settings
    cache: KeyValueCache
    byte_store: ByteStore
    content_store: ContentStore
    renderer: Renderer
    broadcaster: Broadcaster

    @classmethod
    def create(cls, settings: Settings) -> "WcmContext":
        """Build a context with the implementations selected by settings.

        Args:
            settings: The configuration snapshot

        Returns:
            WcmContext (not started yet)
        """
        if settings.backend == "redis":
            client = get_redis_client(settings)
            cache: KeyValueCache = RedisKeyValueCache.create(redis_client=client)
            broadcaster: Broadcaster = RedisBroadcaster.create(redis_client=client)
        else:
            cache = InMemoryKeyValueCache()
            broadcaster = InMemoryBroadcaster()

        if settings.content_store_url:
            content_store: ContentStore = HttpContentStore.create(
                base_url=settings.content_store_url,
                token=settings.content_store_token,
            )
        elif settings.content_file:
            content_store = InMemoryContentStore.from_file(settings.content_file)
        else:
            logger.warning("No content store configured, serving no pages")
            content_store = InMemoryContentStore()

        return cls(
            settings=settings,
            cache=cache,
            byte_store=FileByteStore.create(root=settings.store_root),
            content_store=content_store,
            renderer=Jinja2Renderer.create(template_root=settings.template_root),
            broadcaster=broadcaster,
        )

    async def start(self) -> None:
        """Start message delivery. Subscriptions must be bound before."""
        await self.broadcaster.start()
        logger.info(f"WCM context started (worker {self.settings.worker_id})")

    async def close(self) -> None:
        """Stop message delivery and release connections."""
        await self.broadcaster.close()
        await self.content_store.close()
        close_cache = getattr(self.cache, "close", None)
        if close_cache is not None:
            await close_cache()
        logger.info("WCM context closed")
