from __future__ import annotations

import json

import httpx
import pytest

from intelligensi.clients import http_utils
from intelligensi.clients.drupal_service import DrupalServiceClient, construct_endpoint_url, parse_bulk_export
from intelligensi.clients.http_utils import ServiceClientError
from intelligensi.clients.supabase_service import SupabaseServiceClient
from intelligensi.clients.weaviate_service import WeaviateServiceClient, build_search_query, content_class_definition
from intelligensi.models.content_models import VectorObject, VectorProperties


def _obj(nid: str = "1") -> VectorObject:
    return VectorObject(properties=VectorProperties(nid=nid, title="Hello", body="text", status="published"))


# ─────────────────────────────────────────────────────────────
# Weaviate
# ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_weaviate_create_object(test_settings):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "uuid-1", "class": "IntelligensiAi"})

    async with httpx.AsyncClient(base_url="http://weaviate.test", transport=httpx.MockTransport(handler)) as http:
        client = WeaviateServiceClient(test_settings, http_client=http)
        assert await client.create_object(_obj()) == "uuid-1"

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/objects"
    assert request.headers["Authorization"] == "Bearer wv-key"
    assert request.extensions["timeout"]["read"] == 30
    assert json.loads(request.content) == {
        "class": "IntelligensiAi",
        "properties": {"nid": "1", "title": "Hello", "body": "text", "status": "published"},
    }


@pytest.mark.asyncio
async def test_weaviate_non_2xx_is_a_failure(test_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"error": [{"message": "invalid object"}]})

    async with httpx.AsyncClient(base_url="http://weaviate.test", transport=httpx.MockTransport(handler)) as http:
        client = WeaviateServiceClient(test_settings, http_client=http)
        with pytest.raises(ServiceClientError) as exc:
            await client.create_object(_obj())
    assert exc.value.status == 422
    assert "invalid object" in exc.value.body


@pytest.mark.asyncio
async def test_weaviate_ensure_class_skips_existing(test_settings):
    posts = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            posts.append(request)
            return httpx.Response(200, json={})
        return httpx.Response(200, json={"classes": [{"class": "IntelligensiAi"}]})

    async with httpx.AsyncClient(base_url="http://weaviate.test", transport=httpx.MockTransport(handler)) as http:
        client = WeaviateServiceClient(test_settings, http_client=http)
        assert await client.ensure_class("intelligensiAi") is False
    assert posts == []


@pytest.mark.asyncio
async def test_weaviate_ensure_class_creates_missing(test_settings):
    posts = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            posts.append(json.loads(request.content))
            return httpx.Response(200, json={})
        return httpx.Response(200, json={"classes": []})

    async with httpx.AsyncClient(base_url="http://weaviate.test", transport=httpx.MockTransport(handler)) as http:
        client = WeaviateServiceClient(test_settings, http_client=http)
        assert await client.ensure_class() is True
    assert posts == [content_class_definition("IntelligensiAi")]
    assert posts[0]["vectorizer"] == "text2vec-openai"
    assert [p["name"] for p in posts[0]["properties"]] == ["nid", "title", "body", "created", "status", "type"]


@pytest.mark.asyncio
async def test_weaviate_not_ready(test_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(base_url="http://weaviate.test", transport=httpx.MockTransport(handler)) as http:
        assert await WeaviateServiceClient(test_settings, http_client=http).is_ready() is False


def test_search_query_escapes_user_text():
    gql = build_search_query("IntelligensiAi", 'say "hi"', prompt="Rewrite {title}\nnow", limit=3, certainty=0.72)
    assert 'IntelligensiAi(nearText: {concepts: ["say \\"hi\\""], certainty: 0.72}, limit: 3)' in gql
    assert 'prompt: "Rewrite {title}\\nnow"' in gql
    assert "singleResult error" in gql


@pytest.mark.asyncio
async def test_weaviate_search(test_settings):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"data": {"Get": {"IntelligensiAi": [{"title": "Moon", "body": "text", "_additional": {"certainty": 0.8}}]}}},
        )

    async with httpx.AsyncClient(base_url="http://weaviate.test", transport=httpx.MockTransport(handler)) as http:
        results = await WeaviateServiceClient(test_settings, http_client=http).search("space", limit=2)

    assert results[0]["title"] == "Moon"
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/graphql"
    gql = json.loads(request.content)["query"]
    assert 'concepts: ["space"]' in gql
    assert "limit: 2" in gql
    assert "captivating read about space" in gql


@pytest.mark.asyncio
async def test_weaviate_search_graphql_errors_raise(test_settings):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"errors": [{"message": "no module generative-openai"}]})

    async with httpx.AsyncClient(base_url="http://weaviate.test", transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(ServiceClientError) as exc:
            await WeaviateServiceClient(test_settings, http_client=http).search("space")
    assert "generative-openai" in exc.value.body
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_weaviate_search_empty(test_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {"Get": {"IntelligensiAi": None}}})

    async with httpx.AsyncClient(base_url="http://weaviate.test", transport=httpx.MockTransport(handler)) as http:
        assert await WeaviateServiceClient(test_settings, http_client=http).search("space") == []


# ─────────────────────────────────────────────────────────────
# Drupal
# ─────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "site_url,expected",
    [
        ("example.com/", "https://example.com/api/bulk-export"),
        ("http://example.com", "http://example.com/api/bulk-export"),
        (" https://example.com/api/bulk-export/ ", "https://example.com/api/bulk-export"),
    ],
)
def test_construct_endpoint_url(site_url, expected):
    assert construct_endpoint_url(site_url) == expected


def test_construct_endpoint_url_requires_url():
    with pytest.raises(ValueError):
        construct_endpoint_url("  ")


def test_parse_bulk_export_shapes():
    assert parse_bulk_export([{"nid": "1"}, "junk"]) == [{"nid": "1"}]
    assert parse_bulk_export({"structure": [{"nid": "2"}]}) == [{"nid": "2"}]
    with pytest.raises(ServiceClientError) as exc:
        parse_bulk_export({"nodes": []})
    assert exc.value.status == 422


@pytest.mark.asyncio
async def test_drupal_fetch_content_keeps_raw_records(test_settings):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(
            200,
            json={
                "structure": [
                    {"nid": 1, "title": "A", "status": "1"},
                    {"nid": 2, "title": {"value": "x"}},
                    {"title": "no id"},
                ]
            },
        )

    client = DrupalServiceClient(test_settings, transport=httpx.MockTransport(handler))
    records = await client.fetch_content("drupal.test")

    assert seen == ["https://drupal.test/api/bulk-export"]
    # a malformed title is left for the per-item write step to reject
    assert [r["nid"] for r in records] == [1, 2]


@pytest.mark.asyncio
async def test_drupal_hosts_do_not_grow_shared_pool(test_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"nid": "1"}])

    client = DrupalServiceClient(test_settings, transport=httpx.MockTransport(handler))
    before = len(http_utils._clients)
    for i in range(20):
        await client.fetch_structure(f"site-{i}.test")
    assert len(http_utils._clients) == before


@pytest.mark.asyncio
async def test_drupal_invalid_json_is_not_retried(test_settings):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, text="<html>maintenance</html>")

    client = DrupalServiceClient(test_settings, transport=httpx.MockTransport(handler))
    with pytest.raises(ServiceClientError) as exc:
        await client.fetch_structure("drupal.test")
    assert exc.value.status == 422
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_drupal_transient_errors_are_retried(test_settings):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 2:
            return httpx.Response(503, text="busy")
        return httpx.Response(200, json=[{"nid": "1"}])

    client = DrupalServiceClient(test_settings, transport=httpx.MockTransport(handler))
    records = await client.fetch_structure("drupal.test")
    assert records == [{"nid": "1"}]
    assert len(calls) == 2


# ─────────────────────────────────────────────────────────────
# Supabase
# ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_supabase_insert_schema(test_settings):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json=[{"id": 5, "site_id": 3}])

    async with httpx.AsyncClient(
        base_url="http://supabase.test/rest/v1", transport=httpx.MockTransport(handler)
    ) as http:
        row = await SupabaseServiceClient(test_settings, http_client=http).insert_schema({"site_id": 3})

    assert row == {"id": 5, "site_id": 3}
    request = seen[0]
    assert request.url.path == "/rest/v1/schemas"
    assert request.headers["Prefer"] == "return=representation"
    assert request.headers["apikey"] == "anon-key"
    assert json.loads(request.content) == {"site_id": 3}


@pytest.mark.asyncio
async def test_supabase_insert_failure_raises(test_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"message": "duplicate key value"})

    async with httpx.AsyncClient(
        base_url="http://supabase.test/rest/v1", transport=httpx.MockTransport(handler)
    ) as http:
        with pytest.raises(ServiceClientError) as exc:
            await SupabaseServiceClient(test_settings, http_client=http).insert_schema({"site_id": 3})
    assert exc.value.status == 409


@pytest.mark.asyncio
async def test_supabase_missing_site_is_none(test_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["id"] == "eq.8"
        return httpx.Response(200, json=[])

    async with httpx.AsyncClient(
        base_url="http://supabase.test/rest/v1", transport=httpx.MockTransport(handler)
    ) as http:
        assert await SupabaseServiceClient(test_settings, http_client=http).get_site(8) is None


@pytest.mark.asyncio
async def test_supabase_link_site_schema(test_settings):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": 3, "schema_id": 11, "status": "active"}])

    async with httpx.AsyncClient(
        base_url="http://supabase.test/rest/v1", transport=httpx.MockTransport(handler)
    ) as http:
        site = await SupabaseServiceClient(test_settings, http_client=http).link_site_schema(3, 11)

    assert site["schema_id"] == 11
    body = json.loads(seen[0].content)
    assert seen[0].method == "PATCH"
    assert (body["schema_id"], body["status"]) == (11, "active")
