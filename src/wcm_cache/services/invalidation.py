"""Invalidation coordinator service.

Applies content and module changes to the caches of this worker and
fans them out to every other worker:

- Local mutations (an edit notification, a module command) are applied
  here, then published with this worker's id as ``sender``.
- Received messages are applied the same way but never published again.
  Messages whose ``sender`` is this worker are skipped, since their
  change was already applied when it was published.

Publishing is fire-and-forget: a failure to publish is logged and the
local mutation still counts as done.
"""

from typing import Any

from loguru import logger

from wcm_cache.context import WcmContext
from wcm_cache.entities import ModuleInvalidation, NodeInvalidation, Scope
from wcm_cache.protocols import Broadcaster

from .dependency_index import DependencyIndex
from .page_directory import PageDirectory
from .render_cache import RenderCache

NODE_INVALIDATION_TOPIC = "node_invalidation"
MODULE_INVALIDATION_TOPIC = "module-invalidation-topic"


class InvalidationCoordinator:
    """Keeps directory snapshots and rendered pages in step with content."""

    def __init__(
        self,
        directory: PageDirectory,
        render_cache: RenderCache,
        dependency_index: DependencyIndex,
        broadcaster: Broadcaster,
        worker_id: str,
    ) -> None:
        """Initialize the coordinator.

        Args:
            directory: Page directory whose snapshots get discarded
            render_cache: Render cache whose entries get evicted
            dependency_index: Index mapping changed keys to cache entries
            broadcaster: Cross-process publish/subscribe
            worker_id: Identifier of this worker, stamped on published messages
        """
        self._directory = directory
        self._render_cache = render_cache
        self._dependencies = dependency_index
        self._broadcaster = broadcaster
        self._worker_id = worker_id

    @classmethod
    def create(
        cls,
        context: WcmContext,
        directory: PageDirectory,
        render_cache: RenderCache,
        dependency_index: DependencyIndex,
    ) -> "InvalidationCoordinator":
        """Factory method to create InvalidationCoordinator from the process context."""
        return cls(
            directory=directory,
            render_cache=render_cache,
            dependency_index=dependency_index,
            broadcaster=context.broadcaster,
            worker_id=context.settings.worker_id,
        )

    def bind_subscriptions(self) -> None:
        """Subscribe to both invalidation topics. Call before the broadcaster starts."""
        self._broadcaster.subscribe(NODE_INVALIDATION_TOPIC, self.on_node_message)
        self._broadcaster.subscribe(MODULE_INVALIDATION_TOPIC, self.on_module_message)

    async def content_changed(self, change: NodeInvalidation) -> int:
        """Apply a local content edit and broadcast it.

        Returns:
            Number of rendered pages evicted on this worker
        """
        evicted = await self._apply_node(change)
        await self._publish(NODE_INVALIDATION_TOPIC, change.to_message(self._worker_id))
        return evicted

    async def module_changed(self, change: ModuleInvalidation) -> int:
        """Apply a local module command and broadcast it.

        Returns:
            Number of directory snapshots discarded on this worker
        """
        cleared = await self._apply_module(change)
        await self._publish(MODULE_INVALIDATION_TOPIC, change.to_message(self._worker_id))
        return cleared

    async def on_node_message(self, message: dict[str, Any]) -> None:
        """Handle a content invalidation published by a worker."""
        if message.get("sender") == self._worker_id:
            return
        try:
            change = NodeInvalidation.from_message(message)
        except (KeyError, TypeError) as e:
            logger.warning(f"Ignoring malformed node invalidation {message}: {e}")
            return
        await self._apply_node(change)

    async def on_module_message(self, message: dict[str, Any]) -> None:
        """Handle a module invalidation published by a worker."""
        if message.get("sender") == self._worker_id:
            return
        try:
            change = ModuleInvalidation.from_message(message)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed module invalidation {message}: {e}")
            return
        await self._apply_module(change)

    async def _apply_node(self, change: NodeInvalidation) -> int:
        cleared = await self._directory.invalidate_branch(change.repository_id, change.branch_id)
        logger.info(
            f"Node {change.node_id} changed on {change.repository_id}/{change.branch_id}, "
            f"cleared {cleared} page directories"
        )

        if not self._render_cache.enabled:
            return 0

        scope = Scope.for_branch(change.repository_id, change.branch_id)
        evicted = 0
        for cache_key in await self._dependencies.lookup(scope, change.node_id):
            if await self._render_cache.evict(scope, cache_key):
                evicted += 1
        if evicted:
            logger.info(f"Evicted {evicted} rendered pages depending on {change.node_id}")
        return evicted

    async def _apply_module(self, change: ModuleInvalidation) -> int:
        cleared = await self._directory.invalidate_host(change.host)
        logger.info(f"Module {change.command} on {change.host}, cleared {cleared} page directories")
        return cleared

    async def _publish(self, topic: str, message: dict[str, Any]) -> None:
        try:
            await self._broadcaster.publish(topic, message)
        except Exception as e:
            logger.error(f"Failed to broadcast on {topic}: {e}")
            return
        logger.debug(f"Broadcast on {topic}: {message}")

    @property
    def worker_id(self) -> str:
        return self._worker_id
