"""Content store protocol.

Defines the query interface of the persistent content store. The store
is an opaque data source: it returns records (dicts) with arbitrary
fields plus a unique identifier field (``_doc``).
"""

from typing import Any, Protocol, runtime_checkable

from wcm_cache.entities import Scope


@runtime_checkable
class ContentStore(Protocol):
    """Protocol for content stores."""

    async def query_nodes(self, scope: Scope, query: dict[str, Any], limit: int = -1) -> list[dict[str, Any]]:
        """Fetch all records matching a query.

        Args:
            scope: Repository/branch to query
            query: Field filter (e.g. ``{"_type": "wcm:page"}``)
            limit: Maximum number of records, -1 for no limit

        Returns:
            Matching records, in store order
        """
        ...

    async def read_node(self, scope: Scope, node_id: str) -> dict[str, Any] | None:
        """Fetch one record by identifier.

        Returns:
            The record, or None if it does not exist
        """
        ...

    async def close(self) -> None:
        """Release any held connections."""
        ...
