"""Tests for the render cache and the dependency index."""

import json
from unittest.mock import AsyncMock

import pytest

from wcm_cache.entities import Page, PageMatch, RequestDescriptor, Scope
from wcm_cache.errors import StoreError
from wcm_cache.repositories import FileByteStore, InMemoryByteStore
from wcm_cache.services import DependencyIndex, RenderCache

PAGE = Page(id="page-post", uris=("/blog/{slug}",), template="tpl/post.html", template_path="tpl/post.html")


def descriptor(path="/blog/hello", params=None, headers=None, host="example.com", protocol="https"):
    page_match = PageMatch(page=PAGE, tokens={"slug": path.rsplit("/", 1)[-1]}, pattern="/blog/{slug}")
    return RequestDescriptor.create(
        protocol=protocol,
        host=host,
        path=path,
        params=params or {},
        headers=headers or {},
        page_match=page_match,
        allowed_headers=("accept-language",),
    )


@pytest.fixture
def store():
    return InMemoryByteStore()


@pytest.fixture
def index(store):
    return DependencyIndex(byte_store=store)


@pytest.fixture
def cache(store, index):
    return RenderCache(byte_store=store, dependency_index=index, enabled=True, ttl=3600)


@pytest.mark.asyncio
async def test_write_then_read_returns_same_bytes(cache, scope):
    body = "<h1>héllo</h1>".encode()

    assert await cache.write(scope, descriptor(), body, {"page-post"})
    assert await cache.read(scope, descriptor()) == body


@pytest.mark.asyncio
async def test_entry_layout(cache, store, scope):
    d = descriptor()
    await cache.write(scope, d, b"<p>x</p>", {"page-post"})

    prefix = f"wcm/repositories/default/branches/master/pages/{d.cache_key}"
    assert f"{prefix}/page.html" in store.paths()
    entry = json.loads(await store.read_file(f"{prefix}/entry.json"))
    assert entry["cacheKey"] == d.cache_key
    assert entry["path"] == "/blog/hello"
    assert entry["dependencies"] == ["page-post"]


@pytest.mark.asyncio
async def test_disabled_cache_never_touches_storage(store, index, scope):
    enabled = RenderCache(byte_store=store, dependency_index=index, enabled=True)
    await enabled.write(scope, descriptor(), b"cached", set())

    disabled = RenderCache(byte_store=store, dependency_index=index, enabled=False)
    store.read_file = AsyncMock()

    assert await disabled.read(scope, descriptor()) is None
    assert await disabled.write(scope, descriptor(), b"ignored", set()) is False
    store.read_file.assert_not_awaited()


@pytest.mark.asyncio
async def test_miss_for_unknown_descriptor(cache, scope):
    assert await cache.read(scope, descriptor("/blog/other")) is None


@pytest.mark.asyncio
async def test_branches_do_not_share_entries(cache, scope):
    await cache.write(scope, descriptor(), b"master", set())
    develop = Scope(host=scope.host, repository_id="default", branch_id="develop")

    assert await cache.read(develop, descriptor()) is None


@pytest.mark.asyncio
async def test_expired_entry_reads_as_absent_and_is_removed(store, index, scope):
    cache = RenderCache(byte_store=store, dependency_index=index, enabled=True, ttl=60)
    d = descriptor()
    await cache.write(scope, d, b"old", {"page-post"})

    entry_path = f"{RenderCache.entry_directory(scope, d.cache_key)}/entry.json"
    entry = json.loads(await store.read_file(entry_path))
    entry["cachedAt"] -= 120
    await store.write_file(entry_path, json.dumps(entry).encode())

    assert await cache.read(scope, d) is None
    assert store.paths() == []


@pytest.mark.asyncio
async def test_store_failure_reads_as_miss(cache, store, scope):
    await cache.write(scope, descriptor(), b"cached", set())
    store.read_file = AsyncMock(side_effect=StoreError("disk unavailable"))

    assert await cache.read(scope, descriptor()) is None


@pytest.mark.asyncio
async def test_dependency_index_failure_does_not_fail_write(cache, index, scope):
    index.record = AsyncMock(side_effect=StoreError("disk full"))

    assert await cache.write(scope, descriptor(), b"body", {"page-post"})
    assert await cache.read(scope, descriptor()) == b"body"


@pytest.mark.asyncio
async def test_file_store_round_trip(tmp_path, scope):
    store = FileByteStore(root=tmp_path / "data")
    cache = RenderCache(byte_store=store, dependency_index=DependencyIndex(store), enabled=True)
    body = b"x" * 200_000

    await cache.write(scope, descriptor(), body, {"page-post"})

    assert await cache.read(scope, descriptor()) == body


def test_cache_key_is_stable():
    assert descriptor().cache_key == descriptor().cache_key
    assert len(descriptor().cache_key) == 64


def test_cache_key_ignores_headers_outside_allow_list():
    assert descriptor(headers={"user-agent": "a"}).cache_key == descriptor(headers={"user-agent": "b"}).cache_key


def test_cache_key_ignores_param_value_order():
    assert (
        descriptor(params={"tag": ["a", "b"]}).cache_key
        == descriptor(params={"tag": ["b", "a"]}).cache_key
    )


def test_distinct_descriptors_do_not_collide():
    descriptors = []
    for i in range(200):
        descriptors.append(descriptor(f"/blog/post-{i}"))
        descriptors.append(descriptor("/blog/post", params={"page": [str(i)]}))
        descriptors.append(descriptor("/blog/post", headers={"Accept-Language": f"lang-{i}"}))
        descriptors.append(descriptor("/blog/post", host=f"site-{i}.example.com"))
    descriptors.append(descriptor("/blog/post", protocol="http"))

    keys = {d.cache_key for d in descriptors}

    assert len(keys) == len(descriptors)


@pytest.mark.asyncio
async def test_dependency_lookup(index, scope):
    first, second = descriptor("/blog/one"), descriptor("/blog/two")
    await index.record(scope, first, {"page-post", "author-1"})
    await index.record(scope, second, {"page-post"})

    assert await index.lookup(scope, "page-post") == {first.cache_key, second.cache_key}
    assert await index.lookup(scope, "author-1") == {first.cache_key}
    assert await index.lookup(scope, "unknown") == set()


@pytest.mark.asyncio
async def test_dependency_link_contents(index, store, scope):
    d = descriptor()
    await index.record(scope, d, {"author-1"})

    [path] = store.paths()
    assert path.startswith("wcm/repositories/default/branches/master/dependencies/")
    assert json.loads(await store.read_file(path)) == {"key": "author-1", "cacheKey": d.cache_key, "path": "/blog/hello"}


@pytest.mark.asyncio
async def test_evict_removes_entry_and_links(cache, index, store, scope):
    d = descriptor()
    await cache.write(scope, d, b"body", {"page-post", "author-1"})

    assert await cache.evict(scope, d.cache_key)
    assert await cache.read(scope, d) is None
    assert await index.lookup(scope, "author-1") == set()
    assert store.paths() == []
