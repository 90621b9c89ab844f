"""Request descriptor domain entity."""

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any

from .page import PageMatch


@dataclass(frozen=True)
class RequestDescriptor:
    """The inputs that determine cacheable page output.

    Two requests with identical descriptors are cache-equivalent; the
    descriptor, not the raw request, is the source of the cache key.

    Attributes:
        url: Absolute URL (protocol, host and offset path)
        host: Host the request was addressed to
        protocol: "http" or "https"
        path: Offset path of the request
        params: Query parameters (multi-valued)
        headers: Allow-listed request headers, lowercased names
        matching_tokens: Tokens captured by the matched pattern
        matching_path: The matched pattern
        matching_page_id: Identifier of the matched page
        matching_page_title: Title of the matched page
    """

    url: str
    host: str
    protocol: str
    path: str
    params: dict[str, list[str]] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    matching_tokens: dict[str, str] = field(default_factory=dict)
    matching_path: str = ""
    matching_page_id: str = ""
    matching_page_title: str = ""

    @classmethod
    def create(
        cls,
        protocol: str,
        host: str,
        path: str,
        params: dict[str, list[str]],
        headers: dict[str, str],
        page_match: PageMatch,
        allowed_headers: tuple[str, ...] = (),
    ) -> "RequestDescriptor":
        """Build a descriptor for a matched request.

        Args:
            protocol: Request scheme
            host: Request host
            path: Offset path
            params: Query parameters
            headers: Raw request headers (filtered through allowed_headers)
            page_match: The page selected for the path
            allowed_headers: Header names that take part in the cache key

        Returns:
            RequestDescriptor
        """
        allowed = {name.lower() for name in allowed_headers}
        kept = {
            name.lower(): value
            for name, value in headers.items()
            if name.lower() in allowed
        }
        return cls(
            url=f"{protocol}://{host}{path}",
            host=host,
            protocol=protocol,
            path=path,
            params={key: list(values) for key, values in params.items()},
            headers=kept,
            matching_tokens=dict(page_match.tokens),
            matching_path=page_match.pattern,
            matching_page_id=page_match.page.id,
            matching_page_title=page_match.page.display_title,
        )

    @property
    def matching_url(self) -> str:
        return f"{self.protocol}://{self.host}{self.matching_path}"

    @property
    def cache_key(self) -> str:
        """Deterministic SHA-256 hex digest of the key-bearing fields."""
        canonical = json.dumps(
            {
                "url": self.url,
                "path": self.path,
                "params": {key: sorted(values) for key, values in self.params.items()},
                "headers": self.headers,
            },
            sort_keys=True,
            separators=(",", ":"),
        )
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "host": self.host,
            "protocol": self.protocol,
            "path": self.path,
            "params": self.params,
            "headers": self.headers,
            "matchingTokens": self.matching_tokens,
            "matchingPath": self.matching_path,
            "matchingUrl": self.matching_url,
            "matchingPageId": self.matching_page_id,
            "matchingPageTitle": self.matching_page_title,
        }
