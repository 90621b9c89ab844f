"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import ModuleCommandRequest, ModuleSourceConfig, NodeInvalidationRequest
from .responses import HealthCheckResponse, InvalidationResponse, ModuleCommandResponse

__all__ = [
    "ModuleSourceConfig",
    "ModuleCommandRequest",
    "NodeInvalidationRequest",
    "ModuleCommandResponse",
    "InvalidationResponse",
    "HealthCheckResponse",
]
