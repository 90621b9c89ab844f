"""Jinja2 implementation of Renderer.

Templates are loaded from a template root directory. Besides the render
model (``page``, ``template``, ``request``) every template receives a
``dependency(key)`` function; calling it records a data key the output
depends on and renders as an empty string:

    {{ dependency("node:" ~ page.author) }}
"""

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateError, TemplateNotFound, select_autoescape

from wcm_cache.config import settings
from wcm_cache.entities import RenderResult
from wcm_cache.errors import RenderError


class Jinja2Renderer:
    """Jinja2-based implementation of the Renderer protocol."""

    def __init__(self, template_root: str | Path | None = None) -> None:
        """Initialize the renderer.

        Args:
            template_root: Directory holding templates. Defaults to settings.template_root.
        """
        self._template_root = Path(template_root or settings.template_root)
        self._env = Environment(
            loader=FileSystemLoader(str(self._template_root)),
            autoescape=select_autoescape(["html", "xml"]),
            enable_async=True,
        )

    @classmethod
    def create(cls, template_root: str | Path | None = None) -> "Jinja2Renderer":
        """Factory method to create Jinja2Renderer with defaults."""
        return cls(template_root=template_root)

    async def render(self, template_path: str, model: dict[str, Any]) -> RenderResult:
        """Render a template with the given model.

        Args:
            template_path: Template path relative to the template root
            model: The render model

        Returns:
            RenderResult with the text and the dependency keys the template declared

        Raises:
            RenderError: If the template is missing or fails to render
        """
        dependencies: set[str] = set()

        def dependency(key: Any) -> str:
            dependencies.add(str(key))
            return ""

        try:
            template = self._env.get_template(template_path.lstrip("/"))
            text = await template.render_async(**model, dependency=dependency)
        except TemplateNotFound as e:
            raise RenderError(template_path, f"template not found: {e.name}") from e
        except TemplateError as e:
            raise RenderError(template_path, str(e)) from e

        return RenderResult(text=text, dependencies=frozenset(dependencies))

    @property
    def template_root(self) -> Path:
        return self._template_root
