"""Invalidation message domain entities."""

from dataclasses import dataclass
from typing import Any

MODULE_COMMANDS = ("deploy", "undeploy", "refresh")


@dataclass(frozen=True)
class NodeInvalidation:
    """A content record changed.

    Attributes:
        node_id: Identifier of the changed record
        repository_id: Repository holding the record
        branch_id: Branch holding the record
        ref: Reference string of the record
        sender: Worker id of the publisher, None for local mutations
    """

    node_id: str
    repository_id: str
    branch_id: str
    ref: str | None = None
    sender: str | None = None

    def to_message(self, sender: str) -> dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "branchId": self.branch_id,
            "repositoryId": self.repository_id,
            "ref": self.ref,
            "sender": sender,
        }

    @classmethod
    def from_message(cls, message: dict[str, Any]) -> "NodeInvalidation":
        return cls(
            node_id=message["nodeId"],
            repository_id=message["repositoryId"],
            branch_id=message["branchId"],
            ref=message.get("ref"),
            sender=message.get("sender"),
        )


@dataclass(frozen=True)
class ModuleInvalidation:
    """A module was deployed, undeployed or refreshed on a host.

    Attributes:
        command: One of "deploy", "undeploy", "refresh"
        host: The virtual host the module belongs to
        sender: Worker id of the publisher, None for local mutations
    """

    command: str
    host: str
    sender: str | None = None

    def __post_init__(self) -> None:
        if self.command not in MODULE_COMMANDS:
            raise ValueError(f"Unknown module command: {self.command}")

    def to_message(self, sender: str) -> dict[str, Any]:
        return {
            "command": self.command,
            "host": self.host,
            "sender": sender,
        }

    @classmethod
    def from_message(cls, message: dict[str, Any]) -> "ModuleInvalidation":
        return cls(
            command=message["command"],
            host=message["host"],
            sender=message.get("sender"),
        )
