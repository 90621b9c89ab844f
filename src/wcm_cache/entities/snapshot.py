"""Page directory snapshot domain entity."""

import time
from dataclasses import dataclass, field
from typing import Any

from .page import Page


@dataclass(frozen=True)
class DirectorySnapshot:
    """Immutable mapping from URI pattern to page.

    Entries keep the order in which the content store returned the
    pages, which is also the order patterns are tried during matching.

    Attributes:
        entries: (pattern, page) pairs in iteration order
        loaded_at: Unix timestamp of the load
        ttl: Time-to-live in seconds
    """

    entries: tuple[tuple[str, Page], ...]
    loaded_at: float = field(default_factory=time.time)
    ttl: int = 0

    @classmethod
    def from_pages(cls, pages: dict[str, Page], ttl: int) -> "DirectorySnapshot":
        return cls(entries=tuple(pages.items()), ttl=ttl)

    @property
    def patterns(self) -> list[str]:
        return [pattern for pattern, _ in self.entries]

    def __len__(self) -> int:
        return len(self.entries)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the shared key/value cache."""
        return {
            "loadedAt": self.loaded_at,
            "ttl": self.ttl,
            "entries": [[pattern, page.to_dict()] for pattern, page in self.entries],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DirectorySnapshot":
        """Inverse of to_dict."""
        return cls(
            entries=tuple((pattern, Page.from_dict(page)) for pattern, page in data.get("entries", [])),
            loaded_at=float(data.get("loadedAt", 0)),
            ttl=int(data.get("ttl", 0)),
        )
