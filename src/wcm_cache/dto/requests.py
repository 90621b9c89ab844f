"""Request DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ModuleSourceConfig(BaseModel):
    """Where a module is fetched from.

    Every field is optional here so that an incomplete descriptor reaches
    the module service, which answers with a specific message.
    """

    type: str | None = Field(None, description="Source control provider: 'github' or 'bitbucket'")
    uri: str | None = Field(None, description="Repository URI")
    path: str | None = Field(None, description="Path of the module inside the repository (default '/')")


class ModuleCommandRequest(BaseModel):
    """Request DTO for deploy and redeploy commands."""

    source: ModuleSourceConfig | None = Field(None, description="The module source descriptor")

    def to_config(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class NodeInvalidationRequest(BaseModel):
    """Request DTO announcing a content record change."""

    model_config = ConfigDict(populate_by_name=True)

    node_id: str = Field(..., alias="nodeId", description="Identifier of the changed record", min_length=1)
    branch_id: str = Field(..., alias="branchId", description="Branch holding the record", min_length=1)
    repository_id: str = Field(..., alias="repositoryId", description="Repository holding the record", min_length=1)
    ref: str | None = Field(None, description="Reference string of the record")
