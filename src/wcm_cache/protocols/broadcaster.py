"""Broadcast protocol.

Defines the publish/subscribe transport used to fan out invalidation
messages to every worker process. Delivery is fire-and-forget: publishers
never wait for subscribers.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

MessageHandler = Callable[[dict[str, Any]], Awaitable[None]]


@runtime_checkable
class Broadcaster(Protocol):
    """Protocol for process-wide publish/subscribe transports."""

    async def publish(self, topic: str, message: dict[str, Any]) -> None:
        """Publish a JSON-serializable message on a topic."""
        ...

    def subscribe(self, topic: str, handler: MessageHandler) -> None:
        """Register a coroutine handler for a topic."""
        ...

    async def start(self) -> None:
        """Start delivering messages to subscribers."""
        ...

    async def close(self) -> None:
        """Stop delivery and release the transport."""
        ...
