#!/usr/bin/env python3
"""
Demo script for the WCM page cache.

Runs two in-process workers sharing a broadcast hub against an in-memory
content store, and walks through pattern matching, page resolution,
render caching and invalidation.
"""

import asyncio
import tempfile
import time
from pathlib import Path

from wcm_cache import Settings, WcmContext, configure_logging, match
from wcm_cache.entities import NodeInvalidation, PageRequest, Scope
from wcm_cache.repositories import (
    InMemoryBroadcaster,
    InMemoryByteStore,
    InMemoryContentStore,
    InMemoryKeyValueCache,
    Jinja2Renderer,
    MemoryBroadcastHub,
)
from wcm_cache.services import DependencyIndex, InvalidationCoordinator, PageDirectory, PageService, RenderCache

PAGES = [
    {"_doc": "home", "_type": "wcm:page", "title": "Home", "uris": ["/"], "template": "tpl/home.html"},
    {"_doc": "post", "_type": "wcm:page", "title": "Post", "uris": ["/blog/{slug}"], "template": "tpl-post"},
    {"_doc": "tpl-post", "_type": "wcm:template", "path": "tpl/post.html"},
]

TEMPLATES = {
    "tpl/home.html": "<h1>{{ page.title }}</h1>",
    "tpl/post.html": "<h1>{{ page.title }}: {{ request.tokens.slug }}</h1>{{ dependency('author-1') }}",
}


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def demo_matcher() -> None:
    """Demonstrate URI pattern matching."""
    print_section("Pattern Matching")

    cases = [
        ("/blog/{slug}", "/blog/hello-world"),
        ("/u/{name}", "/u/a%20b"),
        ("/files/**", "/files/x/y/z"),
        ("/a/*/c", "/a/b/c"),
        ("/about", "/contact"),
    ]
    for pattern, path in cases:
        tokens = match(pattern, path)
        status = "✓" if tokens is not None else "✗"
        print(f"  {status} {pattern:<16} {path:<20} → {tokens}")


class Worker:
    """Services of one simulated worker process."""

    def __init__(self, name: str, hub: MemoryBroadcastHub, shared: dict, template_root: Path) -> None:
        config = Settings(
            backend="memory",
            appserver_mode="production",
            wcm_cache=True,
            template_root=str(template_root),
            worker_id=name,
        )
        self.context = WcmContext(
            settings=config,
            cache=shared["cache"],
            byte_store=shared["bytes"],
            content_store=shared["content"],
            renderer=Jinja2Renderer(template_root),
            broadcaster=InMemoryBroadcaster(hub),
        )
        directory = PageDirectory.create(self.context)
        index = DependencyIndex.create(self.context)
        render_cache = RenderCache.create(self.context, index)
        self.coordinator = InvalidationCoordinator.create(self.context, directory, render_cache, index)
        self.coordinator.bind_subscriptions()
        self.pages = PageService.create(self.context, directory, render_cache)


async def demo_workers(template_root: Path) -> None:
    """Demonstrate rendering, caching and invalidation across two workers."""
    print_section("Render Cache and Invalidation")

    hub = MemoryBroadcastHub()
    shared = {
        "cache": InMemoryKeyValueCache(),
        "bytes": InMemoryByteStore(),
        "content": InMemoryContentStore(PAGES),
    }
    first = Worker("worker-a", hub, shared, template_root)
    second = Worker("worker-b", hub, shared, template_root)
    await first.context.start()
    await second.context.start()

    scope = Scope(host="example.com", repository_id="default", branch_id="master")
    request = PageRequest(scope=scope, protocol="https", path="/blog/hello-world")

    for worker in (first, second, first):
        start = time.time()
        served = await worker.pages.serve(request)
        elapsed = (time.time() - start) * 1000
        source = "cache" if served.cached else "render"
        print(f"  {worker.context.settings.worker_id}: {served.body.decode()} [{source}, {elapsed:.2f} ms]")

    print(f"\n📚 Content store queries so far: {shared['content'].query_count}")

    print("\n✏️  Editing author-1 on worker-a...")
    evicted = await first.coordinator.content_changed(
        NodeInvalidation(node_id="author-1", repository_id="default", branch_id="master")
    )
    await first.context.broadcaster.drain()
    print(f"  Evicted {evicted} rendered page(s)")

    served = await second.pages.serve(request)
    print(f"  worker-b after edit: {'cache' if served.cached else 'render'}")
    print(f"📚 Content store queries so far: {shared['content'].query_count}")

    await first.context.close()
    await second.context.close()


async def main() -> None:
    configure_logging("WARNING")
    demo_matcher()

    with tempfile.TemporaryDirectory() as root:
        template_root = Path(root)
        for name, source in TEMPLATES.items():
            path = template_root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(source, encoding="utf-8")
        await demo_workers(template_root)

    print("\n✅ Demo completed!")


if __name__ == "__main__":
    asyncio.run(main())
