"""HTTP content store client.

Talks to a content repository API over HTTP:

- ``POST {base}/repositories/{repository}/branches/{branch}/nodes/query?limit=-1``
  with the query as JSON body, answering ``{"rows": [...]}``
- ``GET {base}/repositories/{repository}/branches/{branch}/nodes/{id}``
  answering the record, or 404

Key features:
- Lazily created async client with pooled connections
- Optional bearer token
- Async support for concurrent requests
"""

from typing import Any

import httpx

from wcm_cache.config import settings
from wcm_cache.entities import Scope
from wcm_cache.errors import StoreError


class HttpContentStore:
    """httpx-based implementation of the ContentStore protocol.

    Example:
        ```python
        store = HttpContentStore.create(base_url="http://localhost:8080")
        rows = await store.query_nodes(scope, {"_type": "wcm:page"})
        ```
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the content store client.

        Args:
            base_url: API base URL. Defaults to settings.content_store_url.
            token: Bearer token. Defaults to settings.content_store_token.
            timeout: Request timeout in seconds.
        """
        base_url = base_url or settings.content_store_url
        if not base_url:
            raise ValueError("A content store URL is required (CONTENT_STORE_URL)")
        self._base_url = base_url.rstrip("/")
        self._token = token or settings.content_store_token
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @classmethod
    def create(
        cls,
        base_url: str | None = None,
        token: str | None = None,
    ) -> "HttpContentStore":
        """Factory method to create HttpContentStore with defaults.

        Args:
            base_url: API base URL. If None, uses settings.
            token: Bearer token. If None, uses settings.

        Returns:
            Configured HttpContentStore
        """
        return cls(base_url=base_url, token=token)

    @staticmethod
    def _branch_path(scope: Scope) -> str:
        return f"/repositories/{scope.repository_id}/branches/{scope.branch_id}"

    async def query_nodes(self, scope: Scope, query: dict[str, Any], limit: int = -1) -> list[dict[str, Any]]:
        """Fetch all records matching a query.

        Raises:
            StoreError: If the API request fails
        """
        url = f"{self._branch_path(scope)}/nodes/query"
        try:
            response = await self.client.post(url, params={"limit": limit}, json=query)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise StoreError(f"Content store query failed: {e}") from e

        rows = data.get("rows") if isinstance(data, dict) else data
        if not isinstance(rows, list):
            raise StoreError(f"Unexpected query response format: {data}")
        return rows

    async def read_node(self, scope: Scope, node_id: str) -> dict[str, Any] | None:
        """Fetch one record by identifier.

        Raises:
            StoreError: If the API request fails for a reason other than 404
        """
        url = f"{self._branch_path(scope)}/nodes/{node_id}"
        try:
            response = await self.client.get(url)
            if response.status_code == httpx.codes.NOT_FOUND:
                return None
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise StoreError(f"Content store read failed for {node_id}: {e}") from e

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
