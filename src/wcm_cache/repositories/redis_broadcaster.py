"""Redis pub/sub implementation of Broadcaster.

Every worker process subscribes to the invalidation topics on the same
Redis server. Publishing returns as soon as Redis accepted the message;
there is no acknowledgement from subscribers.
"""

import asyncio
import json
from collections import defaultdict
from typing import Any

import redis.asyncio as redis
from loguru import logger

from wcm_cache.config import get_redis_client
from wcm_cache.errors import StoreError
from wcm_cache.protocols import MessageHandler

RECONNECT_DELAY = 1.0
MAX_RECONNECT_DELAY = 30.0


class RedisBroadcaster:
    """Redis implementation of the Broadcaster protocol.

    Handlers are registered with ``subscribe`` before ``start``; ``start``
    opens one pub/sub connection and spawns a listener task that
    dispatches decoded JSON messages to the handlers of their channel.
    When the connection drops the listener waits, opens a fresh pub/sub
    connection and subscribes again, backing off up to
    ``MAX_RECONNECT_DELAY`` seconds between attempts.
    """

    def __init__(self, redis_client: redis.Redis | None = None, reconnect_delay: float = RECONNECT_DELAY) -> None:
        self._client = redis_client or get_redis_client()
        self._handlers: dict[str, list[MessageHandler]] = defaultdict(list)
        self._pubsub: Any = None
        self._listener: asyncio.Task | None = None
        self._reconnect_delay = reconnect_delay

    @classmethod
    def create(cls, redis_client: redis.Redis | None = None) -> "RedisBroadcaster":
        """Factory method to create RedisBroadcaster with defaults."""
        return cls(redis_client=redis_client)

    async def publish(self, topic: str, message: dict[str, Any]) -> None:
        try:
            await self._client.publish(topic, json.dumps(message))
        except redis.RedisError as e:
            raise StoreError(f"Redis publish failed on {topic}: {e}") from e

    def subscribe(self, topic: str, handler: MessageHandler) -> None:
        self._handlers[topic].append(handler)

    async def _open_pubsub(self) -> None:
        self._pubsub = self._client.pubsub()
        await self._pubsub.subscribe(*self._handlers.keys())

    async def _close_pubsub(self) -> None:
        pubsub, self._pubsub = self._pubsub, None
        if pubsub is None:
            return
        try:
            await pubsub.unsubscribe()
            await pubsub.aclose()
        except (redis.RedisError, OSError) as e:
            logger.warning(f"Failed to close broadcast subscription cleanly: {e}")

    async def start(self) -> None:
        if self._listener is not None or not self._handlers:
            return

        await self._open_pubsub()
        self._listener = asyncio.create_task(self._listen())
        logger.info(f"Subscribed to broadcast topics: {', '.join(self._handlers)}")

    async def _listen(self) -> None:
        delay = self._reconnect_delay
        while True:
            try:
                if self._pubsub is None:
                    await self._open_pubsub()
                    logger.info(f"Resubscribed to broadcast topics: {', '.join(self._handlers)}")
                async for message in self._pubsub.listen():
                    delay = self._reconnect_delay
                    await self._dispatch(message)
                logger.warning("Broadcast subscription ended, resubscribing")
            except Exception as e:
                logger.error(f"Broadcast listener failed, retrying in {delay:.1f}s: {e}")

            await self._close_pubsub()
            await asyncio.sleep(delay)
            delay = min(delay * 2, MAX_RECONNECT_DELAY)

    async def _dispatch(self, message: dict[str, Any]) -> None:
        if message.get("type") != "message":
            return

        channel = message["channel"]
        topic = channel.decode() if isinstance(channel, bytes) else channel
        try:
            payload = json.loads(message["data"])
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed broadcast on {topic}")
            return

        for handler in self._handlers.get(topic, []):
            try:
                await handler(payload)
            except Exception as e:
                # the listener outlives failing handlers
                logger.exception(f"Broadcast handler failed on {topic}: {e}")

    async def close(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Broadcast listener had stopped with an error: {e}")
            self._listener = None

        await self._close_pubsub()
