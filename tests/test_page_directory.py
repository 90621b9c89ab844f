"""Tests for the page directory: loading, preloading flag and resolution."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from wcm_cache.entities import Scope
from wcm_cache.errors import DirectoryLoadError, DirectoryLoadTimeout, StoreError
from wcm_cache.repositories import InMemoryContentStore, InMemoryKeyValueCache
from wcm_cache.services import PageDirectory


def page(doc, uris, template="tpl/post.html", **fields):
    return {"_doc": doc, "_type": "wcm:page", "uris": uris, "template": template, **fields}


@pytest.fixture
def directory(context):
    return PageDirectory.create(context)


@pytest.mark.asyncio
async def test_resolve_binds_tokens(directory, scope):
    page_match = await directory.resolve(scope, "/blog/hello-world")

    assert page_match is not None
    assert page_match.page.id == "page-post"
    assert page_match.tokens == {"slug": "hello-world"}
    assert page_match.pattern == "/blog/{slug}"
    assert page_match.page.template_path == "tpl/post.html"


@pytest.mark.asyncio
async def test_resolve_is_idempotent(directory, scope, context):
    first = await directory.resolve(scope, "/blog/hello-world")
    second = await directory.resolve(scope, "/blog/hello-world")

    assert first == second
    assert context.content_store.query_count == 1


@pytest.mark.asyncio
async def test_unknown_path_resolves_to_none(directory, scope):
    assert await directory.resolve(scope, "/nowhere") is None


@pytest.mark.asyncio
async def test_template_record_is_resolved_to_its_path(directory, scope):
    page_match = await directory.resolve(scope, "/about")

    assert page_match.page.template == "template-about"
    assert page_match.page.template_path == "tpl/about.html"


@pytest.mark.asyncio
async def test_page_with_unknown_template_is_skipped(scope):
    store = InMemoryContentStore([
        page("broken", ["/broken"], template="no-such-template"),
        page("ok", ["/ok"]),
    ])
    directory = PageDirectory(cache=InMemoryKeyValueCache(), content_store=store)

    assert await directory.resolve(scope, "/broken") is None
    assert (await directory.resolve(scope, "/ok")).page.id == "ok"


@pytest.mark.asyncio
async def test_pages_without_template_or_uris_are_ignored(scope):
    store = InMemoryContentStore([
        page("no-template", ["/a"], template=""),
        page("no-uris", []),
    ])
    directory = PageDirectory(cache=InMemoryKeyValueCache(), content_store=store)

    snapshot = await directory.load(scope)

    assert len(snapshot) == 0


@pytest.mark.asyncio
async def test_first_registered_pattern_wins(scope):
    store = InMemoryContentStore([
        page("featured", ["/blog/featured"]),
        page("post", ["/blog/{slug}"]),
    ])
    directory = PageDirectory(cache=InMemoryKeyValueCache(), content_store=store)

    assert (await directory.resolve(scope, "/blog/featured")).page.id == "featured"
    assert (await directory.resolve(scope, "/blog/other")).page.id == "post"


@pytest.mark.asyncio
async def test_general_pattern_registered_first_shadows_specific_one(scope):
    store = InMemoryContentStore([
        page("post", ["/blog/{slug}"]),
        page("featured", ["/blog/featured"]),
    ])
    directory = PageDirectory(cache=InMemoryKeyValueCache(), content_store=store)

    assert (await directory.resolve(scope, "/blog/featured")).page.id == "post"


@pytest.mark.asyncio
async def test_duplicate_uri_keeps_position_of_first_definition(scope):
    store = InMemoryContentStore([
        page("first", ["/same"]),
        page("catch-all", ["**"]),
        page("second", ["/same"]),
    ])
    directory = PageDirectory(cache=InMemoryKeyValueCache(), content_store=store)

    snapshot = await directory.load(scope)

    assert snapshot.patterns == ["/same", "**"]
    assert (await directory.resolve(scope, "/same")).page.id == "second"


@pytest.mark.asyncio
async def test_concurrent_cold_loads_query_once(directory, scope, context):
    results = await asyncio.gather(*(directory.resolve(scope, "/blog/hello") for _ in range(10)))

    assert context.content_store.query_count == 1
    assert all(result == results[0] for result in results)
    assert scope.preloading_key not in context.cache.keys()


@pytest.mark.asyncio
async def test_snapshot_is_shared_between_workers(context, scope):
    # two directories over the same cache behave like two worker processes
    first = PageDirectory.create(context)
    second = PageDirectory.create(context)

    await first.resolve(scope, "/about")
    await second.resolve(scope, "/about")

    assert context.content_store.query_count == 1


@pytest.mark.asyncio
async def test_failed_load_clears_preloading_flag(directory, scope, context):
    real_query = context.content_store.query_nodes
    context.content_store.query_nodes = AsyncMock(side_effect=StoreError("content store down"))

    with pytest.raises(DirectoryLoadError):
        await directory.resolve(scope, "/blog/hello")

    assert scope.preloading_key not in context.cache.keys()
    assert scope.directory_key not in context.cache.keys()

    context.content_store.query_nodes = real_query
    assert (await directory.resolve(scope, "/blog/hello")).page.id == "page-post"


@pytest.mark.asyncio
async def test_waiting_on_stuck_loader_times_out(scope):
    cache = InMemoryKeyValueCache()
    await cache.add(scope.preloading_key, True, 30)
    directory = PageDirectory(
        cache=cache,
        content_store=InMemoryContentStore([]),
        preload_wait_ms=5,
        preload_deadline=0.05,
    )

    with pytest.raises(DirectoryLoadTimeout):
        await directory.resolve(scope, "/anything")


@pytest.mark.asyncio
async def test_waiter_picks_up_snapshot_written_by_other_worker(scope):
    cache = InMemoryKeyValueCache()
    store = InMemoryContentStore([page("post", ["/blog/{slug}"])])
    loader = PageDirectory(cache=cache, content_store=store)
    waiter = PageDirectory(cache=cache, content_store=store, preload_wait_ms=5, preload_deadline=2.0)
    await cache.add(scope.preloading_key, True, 30)

    async def finish_loading():
        await asyncio.sleep(0.02)
        await cache.remove(scope.preloading_key)
        await loader.load(scope)

    page_match, _ = await asyncio.gather(waiter.resolve(scope, "/blog/x"), finish_loading())

    assert page_match.page.id == "post"
    assert store.query_count == 1


@pytest.mark.asyncio
async def test_invalidate_flag_forces_rebuild(directory, scope, context):
    await directory.resolve(scope, "/about")
    await directory.resolve(scope, "/about")
    await directory.resolve(scope, "/about", invalidate=True)

    assert context.content_store.query_count == 2


@pytest.mark.asyncio
async def test_invalidate_branch_clears_every_host(directory, context):
    one = Scope("one.example.com", "default", "master")
    two = Scope("two.example.com", "default", "master")
    other_branch = Scope("one.example.com", "default", "develop")
    for scope in (one, two, other_branch):
        await directory.load(scope)

    cleared = await directory.invalidate_branch("default", "master")

    assert cleared == 2
    assert context.cache.keys() == [other_branch.directory_key]


@pytest.mark.asyncio
async def test_invalidate_host_clears_every_branch(directory, context):
    master = Scope("one.example.com", "default", "master")
    develop = Scope("one.example.com", "default", "develop")
    other_host = Scope("two.example.com", "default", "master")
    for scope in (master, develop, other_host):
        await directory.load(scope)

    cleared = await directory.invalidate_host("one.example.com")

    assert cleared == 2
    assert context.cache.keys() == [other_host.directory_key]


@pytest.mark.asyncio
async def test_invalidate_host_keeps_same_name_on_other_port(directory, context):
    plain = Scope("localhost", "default", "master")
    with_port = Scope("localhost:8080", "default", "master")
    for scope in (plain, with_port):
        await directory.load(scope)

    assert await directory.invalidate_host("localhost") == 1
    assert context.cache.keys() == [with_port.directory_key]


@pytest.mark.asyncio
async def test_invalidate_host_reads_glob_characters_literally(directory, context):
    bracketed = Scope("[::1]:8000", "default", "master")
    starred = Scope("*", "default", "master")
    other = Scope("one.example.com", "default", "master")
    for scope in (bracketed, starred, other):
        await directory.load(scope)

    assert await directory.invalidate_host("*") == 1
    assert await directory.invalidate_host("[::1]:8000") == 1
    assert context.cache.keys() == [other.directory_key]


@pytest.mark.asyncio
async def test_invalidate_branch_reads_glob_characters_literally(directory, context):
    literal = Scope("one.example.com", "default", "feature-?")
    lookalike = Scope("one.example.com", "default", "feature-x")
    for scope in (literal, lookalike):
        await directory.load(scope)

    assert await directory.invalidate_branch("default", "feature-?") == 1
    assert context.cache.keys() == [lookalike.directory_key]



def test_directory_ttl_follows_mode(context_factory):
    assert PageDirectory.create(context_factory(appserver_mode="development")).ttl == 120
    assert PageDirectory.create(context_factory(appserver_mode="production")).ttl == 86400
