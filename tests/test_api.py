"""
Tests for the WCM HTTP surface.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from wcm_cache.api.app import create_app

GITHUB_SOURCE = {"source": {"type": "github", "uri": "https://github.com/acme/site"}}


@pytest.fixture
def renderer(context):
    """Spy on the context's renderer."""
    spy = AsyncMock(wraps=context.renderer)
    context.renderer = spy
    return spy


@pytest.fixture
def client(context, renderer):
    """Create a test client running the app lifespan."""
    with TestClient(create_app(context=context)) as client:
        yield client


def test_health(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["cache_healthy"] is True
    assert data["worker_id"] == "worker-a"


def test_page_is_rendered_then_cached(client, renderer):
    """Second identical request is answered from the render cache."""
    first = client.get("/blog/hello-world")
    second = client.get("/blog/hello-world")

    assert first.status_code == 200
    assert first.headers["content-type"].startswith("text/html")
    assert "<h1>Blog Post</h1>" in first.text
    assert "hello-world" in first.text
    assert second.content == first.content
    renderer.render.assert_awaited_once()


def test_unknown_path_falls_through(client):
    """Test that paths without a page reach the 404 fallback."""
    response = client.get("/does/not/exist")
    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}


def test_non_get_requests_are_not_pages(client, renderer):
    response = client.post("/blog/hello-world")
    assert response.status_code in (404, 405)
    renderer.render.assert_not_awaited()


def test_render_failure_is_500(client, context):
    context.content_store.put(
        {"_doc": "bad", "_type": "wcm:page", "uris": ["/bad"], "template": "tpl/broken.html"}
    )
    response = client.get("/bad")
    assert response.status_code == 500
    assert "tpl/broken.html" in response.json()["detail"]


def test_invalidate_query_parameter_reloads_directory(client, context):
    client.get("/about")
    client.get("/about")
    assert context.content_store.query_count == 1

    client.get("/about?invalidate=true")
    assert context.content_store.query_count == 2


def test_branch_header_selects_scope(client, context):
    client.get("/about")
    client.get("/about", headers={"X-Branch-Id": "develop"})

    assert context.content_store.query_count == 2
    assert "wcm:testserver:default:develop:pages" in context.cache.keys()


def test_deploy_module(client):
    """Test module deploy endpoint."""
    response = client.post("/_modules/_deploy?id=site", json=GITHUB_SOURCE)
    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["host"] == "testserver"


def test_deploy_clears_host_directory(client, context):
    client.get("/about")
    assert "wcm:testserver:default:master:pages" in context.cache.keys()

    client.post("/_modules/_deploy?id=site", json=GITHUB_SOURCE)

    assert "wcm:testserver:default:master:pages" not in context.cache.keys()


@pytest.mark.parametrize(
    "body,message",
    [
        (None, "Missing module config argument"),
        ({}, "Missing module config source settings"),
        ({"source": {"uri": "https://github.com/acme/site"}}, "The source descriptor is missing the module 'type' field"),
        ({"source": {"type": "github"}}, "The source descriptor is missing the module 'uri' field"),
    ],
)
def test_deploy_rejects_incomplete_config(client, body, message):
    response = client.post("/_modules/_deploy?id=site", json=body)
    assert response.status_code == 200
    assert response.json()["ok"] is False
    assert response.json()["message"] == message


def test_deploy_requires_module_id(client):
    response = client.post("/_modules/_deploy", json=GITHUB_SOURCE)
    assert response.status_code == 422


def test_forwarded_host_is_used(client):
    response = client.post(
        "/_modules/_deploy?id=site", json=GITHUB_SOURCE, headers={"X-Forwarded-Host": "www.example.com"}
    )
    assert response.json() == {"ok": True, "host": "www.example.com"}


def test_localhost_keeps_port(context, renderer):
    with TestClient(create_app(context=context), base_url="http://localhost:8000") as client:
        response = client.post("/_modules/_redeploy?id=site", json=GITHUB_SOURCE)
    assert response.json()["host"] == "localhost:8000"


def test_undeploy_and_refresh_answer_bare_ok(client):
    assert client.post("/_modules/_undeploy?id=site").json() == {"ok": True}
    assert client.post("/_modules/_refresh?id=site").json() == {"ok": True}


def test_refresh_requires_module_id(client):
    assert client.post("/_modules/_refresh").status_code == 422


def test_rejected_deploy_has_no_host(client):
    assert client.post("/_modules/_deploy?id=site", json={}).json() == {
        "ok": False,
        "message": "Missing module config source settings",
    }


def test_redeploy_and_refresh_clear_host_directory(client, context):
    client.get("/about")
    assert client.post("/_modules/_redeploy?id=site", json=GITHUB_SOURCE).json()["ok"] is True
    assert "wcm:testserver:default:master:pages" not in context.cache.keys()

    client.get("/about")
    assert client.post("/_modules/_refresh?id=site").json()["ok"] is True
    assert "wcm:testserver:default:master:pages" not in context.cache.keys()


def test_encoded_percent_is_decoded_once(client):
    response = client.get("/blog/a%2520b")
    assert response.status_code == 200
    assert "<p>a%20b</p>" in response.text


def test_encoded_slash_stays_in_one_token(client):
    response = client.get("/blog/a%2Fb")
    assert response.status_code == 200
    assert "<p>a/b</p>" in response.text


def test_invalidate_endpoint_evicts_rendered_page(client, renderer):
    client.get("/blog/hello-world")

    response = client.post(
        "/_wcm/_invalidate",
        json={"nodeId": "page-post", "branchId": "master", "repositoryId": "default", "ref": "r1"},
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True, "evicted": 1}
    client.get("/blog/hello-world")
    assert renderer.render.await_count == 2


def test_invalidate_endpoint_validates_body(client):
    response = client.post("/_wcm/_invalidate", json={"nodeId": "page-post"})
    assert response.status_code == 422
