"""Tests for settings and domain entities."""

import pytest

from wcm_cache.config import Settings
from wcm_cache.entities import (
    DirectorySnapshot,
    ModuleInvalidation,
    NodeInvalidation,
    Page,
    PageMatch,
    PageView,
    RequestDescriptor,
    Scope,
    escape_glob,
    host_directory_pattern,
)
from wcm_cache.errors import ModuleConfigError
from wcm_cache.services import validate_source


def make(**overrides):
    return Settings(backend="memory", **overrides)


def test_page_cache_only_in_production():
    assert make(appserver_mode="production", wcm_cache=True).page_cache_enabled is True
    assert make(appserver_mode="development", wcm_cache=True).page_cache_enabled is False
    assert make(appserver_mode="production", wcm_cache=False).page_cache_enabled is False


def test_forced_page_cache():
    assert make(appserver_mode="production", wcm_cache=False, force_page_cache=True).page_cache_enabled is True
    assert make(appserver_mode="development", force_page_cache=True).page_cache_enabled is False


def test_page_cache_off_when_wcm_disabled():
    assert make(appserver_mode="production", wcm_cache=True, wcm_enabled=False).page_cache_enabled is False


def test_directory_ttl():
    assert make(appserver_mode="development").directory_ttl == 120
    assert make(appserver_mode="production").directory_ttl == 86400
    assert make(appserver_mode="production", directory_ttl_override=5).directory_ttl == 5


@pytest.mark.parametrize(
    "overrides",
    [
        {"appserver_mode": "staging"},
        {"backend": "memcached"},
        {"preload_flag_ttl": 0},
        {"page_cache_ttl": -1},
        {"directory_ttl_override": 0},
    ],
)
def test_invalid_settings(overrides):
    values = {"backend": "memory", **overrides}
    with pytest.raises(ValueError):
        Settings(**values)


def test_scope_keys():
    scope = Scope("example.com", "repo", "main")

    assert scope.directory_key == "wcm:example.com:repo:main:pages"
    assert scope.preloading_key == "wcm:example.com:repo:main:pages:preloading"
    assert scope.storage_prefix == "wcm/repositories/repo/branches/main"


def test_scope_from_directory_key():
    with_port = Scope("localhost:8080", "repo", "main")

    assert Scope.from_directory_key(with_port.directory_key) == with_port
    assert Scope.from_directory_key(with_port.preloading_key) is None
    assert Scope.from_directory_key("wcm:repo:pages") is None


def test_glob_characters_are_escaped():
    assert escape_glob("a*b?c[d]\\e") == "a[*]b[?]c[[]d][\\\\]e"
    assert host_directory_pattern("[::1]") == "wcm:[[]::1]:*:pages"


def test_page_from_record():
    page = Page.from_record({"_doc": "p1", "uris": "/single", "template": "tpl/a.html", "title": "A"})

    assert page.id == "p1"
    assert page.uris == ("/single",)
    assert page.template_is_path
    assert page.display_title == "A"


def test_page_view_deny_list():
    page = Page.from_record(
        {"_doc": "p1", "_type": "wcm:page", "_qname": "x", "templatePath": "tpl/a.html", "uris": ["/a"], "body": "b"}
    )

    view = PageView.from_page(page).values

    assert view == {"uris": ["/a"], "body": "b", "id": "p1", "_doc": "p1"}


def test_snapshot_survives_serialization():
    page = Page.from_record({"_doc": "p1", "uris": ["/a", "/b"], "template": "t1"}).with_template_path("tpl/a.html")
    snapshot = DirectorySnapshot.from_pages({"/a": page, "/b": page}, ttl=60)

    restored = DirectorySnapshot.from_dict(snapshot.to_dict())

    assert restored.patterns == ["/a", "/b"]
    assert restored.entries[0][1] == page


def test_descriptor_fields():
    page = Page(id="p1", uris=("/blog/{slug}",), template="t", template_path="tpl/a.html")
    descriptor = RequestDescriptor.create(
        protocol="https",
        host="example.com",
        path="/blog/x",
        params={"q": ["1"]},
        headers={"Accept": "text/html", "Cookie": "secret"},
        page_match=PageMatch(page=page, tokens={"slug": "x"}, pattern="/blog/{slug}"),
        allowed_headers=("accept",),
    )

    data = descriptor.to_dict()

    assert data["url"] == "https://example.com/blog/x"
    assert data["headers"] == {"accept": "text/html"}
    assert data["matchingUrl"] == "https://example.com/blog/{slug}"
    assert data["matchingPageTitle"] == "p1"
    assert data["matchingTokens"] == {"slug": "x"}


def test_invalidation_messages():
    node = NodeInvalidation.from_message(
        {"nodeId": "n", "branchId": "b", "repositoryId": "r", "ref": "x", "sender": "w1"}
    )
    assert node.to_message("w2") == {"nodeId": "n", "branchId": "b", "repositoryId": "r", "ref": "x", "sender": "w2"}

    with pytest.raises(ValueError):
        ModuleInvalidation(command="explode", host="h")


def test_validate_source_defaults_path():
    source = validate_source({"source": {"type": "bitbucket", "uri": "https://bitbucket.org/acme/site"}})
    assert source.path == "/"


def test_validate_source_rejects_unknown_provider():
    with pytest.raises(ModuleConfigError):
        validate_source({"source": {"type": "svn", "uri": "svn://x"}})
