"""Test API endpoints."""

import httpx
import pytest
from fastapi.testclient import TestClient

from peer_cache.cache import TTLCache
from peer_cache.graphql_client import GraphQLClient
from peer_cache.main import app, cache_dependency, client_dependency


@pytest.fixture
def cache():
    cache = TTLCache(60)
    yield cache
    if not cache.stopped:
        cache.stop()


@pytest.fixture
def upstream_calls():
    return []


@pytest.fixture
def api(cache, upstream_calls):
    def handler(request: httpx.Request) -> httpx.Response:
        upstream_calls.append(request)
        if b"broken" in request.content:
            return httpx.Response(200, json={"data": None, "errors": [{"message": "bad field"}]})
        return httpx.Response(200, json={"data": {"hello": {"currentuserid": "u-1"}}})

    app.dependency_overrides[cache_dependency] = lambda: cache
    app.dependency_overrides[client_dependency] = lambda: GraphQLClient(
        cache, endpoint="http://graphql.test/graphql", transport=httpx.MockTransport(handler)
    )
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def test_health_endpoint(api):
    """Test /health endpoint returns 200."""
    response = api.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_stats_endpoint(api, cache):
    cache.set("a", 1)
    cache.get("a")
    cache.get("b")
    response = api.get("/v1/cache/stats")
    assert response.status_code == 200
    assert response.json() == {"hits": 1, "misses": 1, "size": 1, "last_cleared": None}


def test_clear_endpoint_keeps_counters(api, cache):
    cache.set("a", 1)
    cache.get("a")
    response = api.delete("/v1/cache")
    assert response.status_code == 200
    data = response.json()
    assert data["size"] == 0
    assert data["hits"] == 1
    assert data["last_cleared"] is not None


def test_delete_key_endpoint(api, cache):
    cache.set("user:1", {"name": "a"})
    assert api.delete("/v1/cache/user:1").status_code == 204
    assert api.delete("/v1/cache/missing").status_code == 204
    assert not cache.has("user:1")


def test_graphql_proxy_caches_results(api, upstream_calls):
    body = {"query": "query hello { hello { currentuserid } }"}
    first = api.post("/v1/graphql", json=body)
    second = api.post("/v1/graphql", json=body)
    assert first.status_code == 200
    assert first.json() == {"data": {"hello": {"currentuserid": "u-1"}}, "cached": False}
    assert second.json()["cached"] is True
    assert len(upstream_calls) == 1


def test_graphql_proxy_maps_upstream_errors(api):
    response = api.post("/v1/graphql", json={"query": "query broken { nope }"})
    assert response.status_code == 502
    assert "bad field" in response.json()["detail"]


def test_stopped_cache_returns_503(api, cache):
    cache.stop()
    response = api.get("/v1/cache/stats")
    assert response.status_code == 503


def test_delete_key_with_slashes(api, cache):
    cache.set("gql/users/1", {"name": "a"})
    assert api.delete("/v1/cache/gql/users/1").status_code == 204
    assert not cache.has("gql/users/1")


def test_graphql_proxy_maps_malformed_body(api, cache):
    app.dependency_overrides[client_dependency] = lambda: GraphQLClient(
        cache,
        endpoint="http://graphql.test/graphql",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[1, 2])),
    )
    response = api.post("/v1/graphql", json={"query": "query hello { hello }"})
    assert response.status_code == 502
