"""HTTP handler for content change notifications."""

from fastapi import HTTPException, status

from wcm_cache.dto import InvalidationResponse, NodeInvalidationRequest
from wcm_cache.entities import NodeInvalidation
from wcm_cache.errors import StoreError
from wcm_cache.services import InvalidationCoordinator


class InvalidationHandler:
    """HTTP handler applying and broadcasting content edits."""

    def __init__(self, coordinator: InvalidationCoordinator) -> None:
        self._coordinator = coordinator

    async def invalidate(self, request: NodeInvalidationRequest) -> InvalidationResponse:
        """Handle POST /_wcm/_invalidate requests.

        Raises:
            HTTPException: If the caches could not be updated
        """
        change = NodeInvalidation(
            node_id=request.node_id,
            repository_id=request.repository_id,
            branch_id=request.branch_id,
            ref=request.ref,
        )
        try:
            evicted = await self._coordinator.content_changed(change)
        except StoreError as e:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Failed to invalidate {request.node_id}: {e}",
            ) from e
        return InvalidationResponse(ok=True, evicted=evicted)
