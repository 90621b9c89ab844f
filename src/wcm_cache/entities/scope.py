"""Tenant scope domain entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Scope:
    """Host, repository and branch under which pages and caches are partitioned.

    Attributes:
        host: Virtual host the request was addressed to
        repository_id: Content repository identifier
        branch_id: Content branch identifier
    """

    host: str
    repository_id: str
    branch_id: str

    @classmethod
    def for_branch(cls, repository_id: str, branch_id: str) -> "Scope":
        """Scope of a repository/branch regardless of host, for storage operations."""
        return cls(host="", repository_id=repository_id, branch_id=branch_id)

    @classmethod
    def from_directory_key(cls, key: str) -> "Scope | None":
        """Parse a directory slot key back into its scope.

        Hosts may carry a port (``localhost:8080``); repository and
        branch identifiers never contain ``:``.
        """
        prefix, suffix = "wcm:", ":pages"
        if not key.startswith(prefix) or not key.endswith(suffix):
            return None
        parts = key[len(prefix):-len(suffix)].rsplit(":", 2)
        if len(parts) != 3:
            return None
        return cls(host=parts[0], repository_id=parts[1], branch_id=parts[2])

    @property
    def directory_key(self) -> str:
        """Cache slot holding the page directory snapshot."""
        return f"wcm:{self.host}:{self.repository_id}:{self.branch_id}:pages"

    @property
    def preloading_key(self) -> str:
        """Cache slot of the flag marking an in-flight directory rebuild."""
        return f"{self.directory_key}:preloading"

    @property
    def storage_prefix(self) -> str:
        """Byte store prefix for everything cached under this repository/branch."""
        return f"wcm/repositories/{self.repository_id}/branches/{self.branch_id}"


GLOB_SPECIAL = {"*": "[*]", "?": "[?]", "[": "[[]", "\\": "[\\\\]"}


def escape_glob(text: str) -> str:
    r"""Quote glob metacharacters so ``text`` only matches itself.

    Each special character becomes a one-character class, which both
    Redis ``MATCH`` and ``fnmatch`` read literally. Redis also treats
    ``\`` as an escape inside a class, so a backslash is doubled there.
    """
    return "".join(GLOB_SPECIAL.get(char, char) for char in text)


def branch_directory_pattern(repository_id: str, branch_id: str) -> str:
    """Glob matching the directory slots of every host serving a branch."""
    return f"wcm:*:{escape_glob(repository_id)}:{escape_glob(branch_id)}:pages"


def host_directory_pattern(host: str) -> str:
    """Glob preselecting the directory slots of a host.

    ``*`` also spans ``:``, so ``localhost`` preselects ``localhost:8080``
    slots too; check candidates with ``Scope.from_directory_key``.
    """
    return f"wcm:{escape_glob(host)}:*:pages"
