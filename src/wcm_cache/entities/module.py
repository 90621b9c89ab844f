"""Module source domain entity."""

from dataclasses import dataclass

SOURCE_TYPES = ("github", "bitbucket")


@dataclass(frozen=True)
class ModuleSource:
    """Where a module's code bundle is fetched from.

    Attributes:
        type: Source control provider ("github" or "bitbucket")
        uri: Repository URI
        path: Path of the module inside the repository
    """

    type: str
    uri: str
    path: str = "/"
