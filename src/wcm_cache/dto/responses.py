"""Response DTOs for API endpoints."""

from pydantic import BaseModel, Field


class ModuleCommandResponse(BaseModel):
    """Response DTO for module commands.

    Module endpoints always answer 200 and report the outcome in ``ok``.
    """

    ok: bool = Field(..., description="Whether the command was applied")
    host: str | None = Field(None, description="The host the command applied to")
    message: str | None = Field(None, description="Why the command was rejected")


class InvalidationResponse(BaseModel):
    """Response DTO for content invalidation."""

    ok: bool = Field(..., description="Whether the invalidation was applied")
    evicted: int = Field(
        ...,
        description="Number of rendered pages evicted on this worker",
        ge=0,
    )


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_healthy: bool = Field(..., description="Whether the key/value cache is reachable")
    worker_id: str = Field(..., description="Identifier of the answering worker")
