"""In-memory implementations of the store protocols.

Useful for single-process development and for tests. A
``MemoryBroadcastHub`` can be shared between several
``InMemoryBroadcaster`` instances to simulate peer worker processes.
"""

import asyncio
import copy
import fnmatch
import json
import time
from collections import defaultdict
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any

from loguru import logger

from wcm_cache.entities import Scope
from wcm_cache.errors import StoreError
from wcm_cache.protocols import MessageHandler


class InMemoryKeyValueCache:
    """Dictionary-backed KeyValueCache with expiring entries."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[Any, float]] = {}

    def _live(self, key: str) -> tuple[Any, float] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry[1] <= time.monotonic():
            del self._entries[key]
            return None
        return entry

    async def read(self, key: str) -> Any | None:
        entry = self._live(key)
        # hand out copies, like a remote cache would
        return copy.deepcopy(entry[0]) if entry else None

    async def write(self, key: str, value: Any, ttl: int) -> None:
        self._entries[key] = (copy.deepcopy(value), time.monotonic() + ttl)

    async def add(self, key: str, value: Any, ttl: int) -> bool:
        if self._live(key) is not None:
            return False
        await self.write(key, value, ttl)
        return True

    async def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    async def remove_matching(self, pattern: str, predicate: Callable[[str], bool] | None = None) -> int:
        keys = [
            key
            for key in self._entries
            if fnmatch.fnmatchcase(key, pattern) and (predicate is None or predicate(key))
        ]
        for key in keys:
            del self._entries[key]
        return len(keys)

    async def health_check(self) -> bool:
        return True

    def keys(self) -> list[str]:
        return [key for key in list(self._entries) if self._live(key) is not None]


class InMemoryByteStore:
    """Dictionary-backed ByteStore keyed by normalized path."""

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}

    @staticmethod
    def _normalize(path: str) -> str:
        return path.strip("/")

    async def exists_file(self, path: str) -> bool:
        return self._normalize(path) in self._files

    async def read_file(self, path: str) -> bytes | None:
        return self._files.get(self._normalize(path))

    async def read_stream(self, path: str) -> AsyncIterator[bytes]:
        data = self._files.get(self._normalize(path))
        if data is None:
            raise StoreError(f"No such file: {path}")
        yield data

    async def write_file(self, path: str, data: bytes) -> None:
        self._files[self._normalize(path)] = bytes(data)

    async def delete_file(self, path: str) -> bool:
        return self._files.pop(self._normalize(path), None) is not None

    async def list_files(self, directory: str) -> list[str]:
        prefix = self._normalize(directory) + "/"
        return sorted(
            path[len(prefix):]
            for path in self._files
            if path.startswith(prefix) and "/" not in path[len(prefix):]
        )

    def paths(self) -> list[str]:
        return sorted(self._files)


class InMemoryContentStore:
    """List-backed ContentStore.

    Records are matched against a query by field equality. Every record
    must carry a ``_doc`` identifier. The same records are served for
    every repository and branch.
    """

    def __init__(self, records: list[dict[str, Any]] | None = None) -> None:
        self._records: list[dict[str, Any]] = list(records or [])
        self.query_count = 0

    @classmethod
    def from_file(cls, path: str | Path) -> "InMemoryContentStore":
        """Load records from a JSON file holding a list of records."""
        records = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(records, list):
            raise ValueError(f"{path} must contain a JSON list of records")
        return cls(records)

    def put(self, record: dict[str, Any]) -> None:
        """Insert or replace a record by identifier."""
        for index, existing in enumerate(self._records):
            if existing.get("_doc") == record.get("_doc"):
                self._records[index] = record
                return
        self._records.append(record)

    async def query_nodes(self, scope: Scope, query: dict[str, Any], limit: int = -1) -> list[dict[str, Any]]:
        self.query_count += 1
        rows = [
            copy.deepcopy(record)
            for record in self._records
            if all(record.get(key) == value for key, value in query.items())
        ]
        return rows if limit < 0 else rows[:limit]

    async def read_node(self, scope: Scope, node_id: str) -> dict[str, Any] | None:
        for record in self._records:
            if record.get("_doc") == node_id:
                return copy.deepcopy(record)
        return None

    async def close(self) -> None:
        return None


class MemoryBroadcastHub:
    """Shared fan-out point for InMemoryBroadcaster instances."""

    def __init__(self) -> None:
        self._members: list["InMemoryBroadcaster"] = []

    def join(self, member: "InMemoryBroadcaster") -> None:
        self._members.append(member)

    def leave(self, member: "InMemoryBroadcaster") -> None:
        if member in self._members:
            self._members.remove(member)

    async def deliver(self, topic: str, message: dict[str, Any]) -> None:
        for member in list(self._members):
            await member.dispatch(topic, message)


class InMemoryBroadcaster:
    """Broadcaster delivering messages to every member of a hub.

    Like Redis pub/sub, the publisher receives its own messages too.
    Delivery runs in a background task so ``publish`` does not wait on
    subscribers.
    """

    def __init__(self, hub: MemoryBroadcastHub | None = None) -> None:
        self._hub = hub or MemoryBroadcastHub()
        self._handlers: dict[str, list[MessageHandler]] = defaultdict(list)
        self._pending: set[asyncio.Task] = set()
        self._started = False

    async def publish(self, topic: str, message: dict[str, Any]) -> None:
        payload = json.loads(json.dumps(message))
        task = asyncio.create_task(self._hub.deliver(topic, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def subscribe(self, topic: str, handler: MessageHandler) -> None:
        self._handlers[topic].append(handler)

    async def dispatch(self, topic: str, message: dict[str, Any]) -> None:
        if not self._started:
            return
        for handler in self._handlers.get(topic, []):
            try:
                await handler(message)
            except Exception as e:
                logger.exception(f"Broadcast handler failed on {topic}: {e}")

    async def drain(self) -> None:
        """Wait until every published message was delivered."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def start(self) -> None:
        if not self._started:
            self._hub.join(self)
            self._started = True

    async def close(self) -> None:
        await self.drain()
        self._hub.leave(self)
        self._started = False
