"""Shared fixtures: an in-memory WcmContext with Jinja2 templates under tmp_path."""

import pytest

from wcm_cache.config import Settings
from wcm_cache.context import WcmContext
from wcm_cache.entities import Scope
from wcm_cache.repositories import (
    InMemoryBroadcaster,
    InMemoryByteStore,
    InMemoryContentStore,
    InMemoryKeyValueCache,
    Jinja2Renderer,
    MemoryBroadcastHub,
)

POST_TEMPLATE = """<h1>{{ page.title }}</h1>
<p>{{ request.tokens.slug }}</p>
{{ dependency("author-1") }}"""

PAGE_RECORDS = [
    {
        "_doc": "page-post",
        "_type": "wcm:page",
        "title": "Blog Post",
        "uris": ["/blog/{slug}"],
        "template": "tpl/post.html",
    },
    {
        "_doc": "page-about",
        "_type": "wcm:page",
        "title": "About",
        "uris": ["/about"],
        "template": "template-about",
    },
    {
        "_doc": "template-about",
        "_type": "wcm:template",
        "path": "tpl/about.html",
    },
]


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "backend": "memory",
        "appserver_mode": "production",
        "wcm_enabled": True,
        "wcm_cache": True,
        "store_root": str(tmp_path / "data"),
        "template_root": str(tmp_path / "templates"),
        "worker_id": "worker-a",
        "preload_wait_ms": 10,
        "preload_deadline": 2.0,
    }
    values.update(overrides)
    return Settings(**values)


def make_context(tmp_path, records=None, hub=None, **overrides) -> WcmContext:
    return WcmContext(
        settings=make_settings(tmp_path, **overrides),
        cache=InMemoryKeyValueCache(),
        byte_store=InMemoryByteStore(),
        content_store=InMemoryContentStore(PAGE_RECORDS if records is None else records),
        renderer=Jinja2Renderer(template_root=tmp_path / "templates"),
        broadcaster=InMemoryBroadcaster(hub or MemoryBroadcastHub()),
    )


@pytest.fixture
def templates(tmp_path):
    """Template root holding tpl/post.html and tpl/about.html."""
    root = tmp_path / "templates" / "tpl"
    root.mkdir(parents=True)
    (root / "post.html").write_text(POST_TEMPLATE, encoding="utf-8")
    (root / "about.html").write_text("<h1>{{ page.title }}</h1>", encoding="utf-8")
    (root / "broken.html").write_text("{% if %}", encoding="utf-8")
    return tmp_path / "templates"


@pytest.fixture
def context(tmp_path, templates):
    """Production-mode context with the render cache enabled."""
    return make_context(tmp_path)


@pytest.fixture
def scope():
    return Scope(host="example.com", repository_id="default", branch_id="master")


@pytest.fixture
def context_factory(tmp_path, templates):
    """Build further contexts, e.g. with other settings or a shared broadcast hub."""

    def factory(**overrides) -> WcmContext:
        return make_context(tmp_path, **overrides)

    return factory
