"""WCM exception hierarchy.

Shared across services, repositories and handlers so every layer
raises and catches the same types.
"""


class WcmError(Exception):
    """Base for all WCM-specific errors."""


class DirectoryLoadError(WcmError):
    """Raised when the page directory could not be rebuilt from the content store."""


class DirectoryLoadTimeout(WcmError):
    """Raised when waiting on another loader exceeded the preload deadline."""


class TemplateNotFoundError(WcmError):
    """Raised when a template reference cannot be resolved to a template path."""


class RenderError(WcmError):
    """Raised when the renderer fails to produce output for a page.

    Typically a malformed template or a template that does not exist.
    """

    def __init__(self, template_path: str, detail: str) -> None:
        super().__init__(f"Failed to render {template_path}: {detail}")
        self.template_path = template_path
        self.detail = detail


class StoreError(WcmError):
    """Raised when a byte store or key/value cache operation fails."""


class ModuleConfigError(WcmError):
    """Raised when a module command carries an invalid source descriptor."""
