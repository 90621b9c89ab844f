"""Renderer protocol.

Defines the interface of the templating engine that turns a page model
into markup, reporting the data keys the output depended on.
"""

from typing import Any, Protocol, runtime_checkable

from wcm_cache.entities import RenderResult


@runtime_checkable
class Renderer(Protocol):
    """Protocol for page renderers."""

    async def render(self, template_path: str, model: dict[str, Any]) -> RenderResult:
        """Render a template.

        Args:
            template_path: Path of the template
            model: The render model (page, template, request)

        Returns:
            RenderResult with text and dependency keys

        Raises:
            RenderError: If the template is missing or malformed
        """
        ...
