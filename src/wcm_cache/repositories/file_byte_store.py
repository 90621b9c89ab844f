"""Filesystem implementation of ByteStore.

Files live under a root directory that every worker process can reach
(a local disk for a single host, a shared volume for a cluster).
Blocking file I/O runs in worker threads so the event loop keeps serving.
"""

import asyncio
import os
import uuid
from collections.abc import AsyncIterator
from pathlib import Path

from wcm_cache.config import settings
from wcm_cache.errors import StoreError

CHUNK_SIZE = 64 * 1024


class FileByteStore:
    """Filesystem implementation of the ByteStore protocol."""

    def __init__(self, root: str | Path | None = None) -> None:
        """Initialize the byte store.

        Args:
            root: Root directory. Defaults to settings.store_root.
        """
        self._root = Path(root or settings.store_root).resolve()

    @classmethod
    def create(cls, root: str | Path | None = None) -> "FileByteStore":
        """Factory method to create FileByteStore with defaults."""
        return cls(root=root)

    def _resolve(self, path: str) -> Path:
        full = (self._root / path.lstrip("/")).resolve()
        if not full.is_relative_to(self._root):
            raise StoreError(f"Path escapes the store root: {path}")
        return full

    async def exists_file(self, path: str) -> bool:
        return await asyncio.to_thread(self._resolve(path).is_file)

    async def read_file(self, path: str) -> bytes | None:
        full = self._resolve(path)
        try:
            return await asyncio.to_thread(full.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreError(f"Failed to read {path}: {e}") from e

    async def read_stream(self, path: str) -> AsyncIterator[bytes]:
        full = self._resolve(path)
        try:
            handle = await asyncio.to_thread(full.open, "rb")
        except OSError as e:
            raise StoreError(f"Failed to open {path}: {e}") from e

        try:
            while chunk := await asyncio.to_thread(handle.read, CHUNK_SIZE):
                yield chunk
        finally:
            handle.close()

    async def write_file(self, path: str, data: bytes) -> None:
        full = self._resolve(path)

        def _write() -> None:
            full.parent.mkdir(parents=True, exist_ok=True)
            # write-then-rename so readers never see a partial file
            temp = full.with_name(f".{full.name}.{uuid.uuid4().hex}.tmp")
            try:
                temp.write_bytes(data)
                os.replace(temp, full)
            except OSError:
                temp.unlink(missing_ok=True)
                raise

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise StoreError(f"Failed to write {path}: {e}") from e

    async def delete_file(self, path: str) -> bool:
        full = self._resolve(path)
        try:
            await asyncio.to_thread(full.unlink)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StoreError(f"Failed to delete {path}: {e}") from e
        return True

    async def list_files(self, directory: str) -> list[str]:
        full = self._resolve(directory)

        def _list() -> list[str]:
            if not full.is_dir():
                return []
            return sorted(entry.name for entry in full.iterdir() if entry.is_file())

        return await asyncio.to_thread(_list)

    @property
    def root(self) -> Path:
        return self._root
