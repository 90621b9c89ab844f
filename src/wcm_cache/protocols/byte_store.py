"""Byte store protocol.

Defines the interface for the file-backed artifact store that persists
rendered pages and dependency records. Paths are relative and
``/``-separated, rooted under ``wcm/repositories/{repository}/branches/{branch}``.
"""

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable


@runtime_checkable
class ByteStore(Protocol):
    """Protocol for byte stores shared by all worker processes."""

    async def exists_file(self, path: str) -> bool:
        """Check whether a file exists."""
        ...

    async def read_file(self, path: str) -> bytes | None:
        """Read a whole file.

        Returns:
            The file contents, or None if the file does not exist
        """
        ...

    def read_stream(self, path: str) -> AsyncIterator[bytes]:
        """Stream a file in chunks.

        Raises:
            StoreError: If the file does not exist or cannot be read
        """
        ...

    async def write_file(self, path: str, data: bytes) -> None:
        """Write a file, creating parent directories as needed."""
        ...

    async def delete_file(self, path: str) -> bool:
        """Delete a file.

        Returns:
            True if a file was deleted, False if it did not exist
        """
        ...

    async def list_files(self, directory: str) -> list[str]:
        """List the file names directly inside a directory.

        Returns:
            File names (not paths), empty if the directory does not exist
        """
        ...
