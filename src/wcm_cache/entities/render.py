"""Render result domain entity."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RenderResult:
    """Output of a template render.

    Attributes:
        text: The rendered markup
        dependencies: Data keys the output depends on
    """

    text: str
    dependencies: frozenset[str] = field(default_factory=frozenset)
