"""Page domain entities."""

from dataclasses import dataclass, field, replace
from typing import Any

# Record fields never exposed to the renderer
INTERNAL_FIELD_PREFIX = "_"
HIDDEN_FIELDS = frozenset({"templatePath"})


@dataclass(frozen=True)
class Page:
    """A content page loaded from the content store.

    Attributes:
        id: Stable identifier of the page record
        uris: URI patterns the page answers to, in declaration order
        template: Template reference, either a path or a template record id
        title: Optional human-readable title
        template_path: Resolved template path (set once the reference is resolved)
        fields: The full content record, exposed to the renderer through PageView
    """

    id: str
    uris: tuple[str, ...]
    template: str
    title: str | None = None
    template_path: str | None = None
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Page":
        """Build a page from a content store record."""
        uris = record.get("uris") or ()
        if isinstance(uris, str):
            uris = (uris,)
        return cls(
            id=str(record.get("_doc") or record.get("id") or ""),
            uris=tuple(uris),
            template=record.get("template") or "",
            title=record.get("title"),
            template_path=record.get("templatePath"),
            fields=dict(record),
        )

    @property
    def template_is_path(self) -> bool:
        """Check whether the template reference is a literal path."""
        return "/" in self.template

    @property
    def display_title(self) -> str:
        """Title of the page, falling back to its identifier."""
        return self.title or self.id

    def with_template_path(self, template_path: str) -> "Page":
        """Return a copy of this page with its template reference resolved."""
        return replace(self, template_path=template_path)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage in a directory snapshot."""
        return {
            "id": self.id,
            "uris": list(self.uris),
            "template": self.template,
            "title": self.title,
            "templatePath": self.template_path,
            "fields": self.fields,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Page":
        """Inverse of to_dict."""
        return cls(
            id=data["id"],
            uris=tuple(data.get("uris") or ()),
            template=data.get("template") or "",
            title=data.get("title"),
            template_path=data.get("templatePath"),
            fields=dict(data.get("fields") or {}),
        )


@dataclass(frozen=True)
class PageView:
    """The renderer's view of a page.

    Carries every public field of the page record. Internal fields
    (leading underscore) and the resolved template path are left out;
    ``id`` and ``_doc`` both carry the page identifier.
    """

    values: dict[str, Any]

    @classmethod
    def from_page(cls, page: Page) -> "PageView":
        values = {
            key: value
            for key, value in page.fields.items()
            if not key.startswith(INTERNAL_FIELD_PREFIX) and key not in HIDDEN_FIELDS
        }
        values["id"] = page.id
        values["_doc"] = page.id
        return cls(values=values)


@dataclass(frozen=True)
class PageMatch:
    """The page selected for a request path.

    Attributes:
        page: The matched page
        tokens: Tokens captured from the path
        pattern: The URI pattern that matched
    """

    page: Page
    tokens: dict[str, str]
    pattern: str

    def render_model(self) -> dict[str, Any]:
        """Build the model handed to the renderer."""
        return {
            "page": PageView.from_page(self.page).values,
            "template": {"path": self.page.template_path},
            "request": {
                "tokens": self.tokens,
                "matchingPath": self.pattern,
            },
        }
