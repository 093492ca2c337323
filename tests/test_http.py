"""
Tests de las APIs HTTP (shard y coordinador) y del cliente HTTP de shard.
"""
from contextlib import asynccontextmanager

import pytest
from aiohttp import web
from aiohttp import test_utils

from errors import IndexStoreError
from search.options import SearchOptions
from search.query_engine import QueryEngine
from service.coordinator_http import CoordinatorHTTP
from service.shard_http import ShardHTTP
from sharding.shard_client import HTTPShardClient, ShardFailure, ShardRequest
from sharding.shard_config import ShardConfig, build_http_clients
from sharding.shard_coordinator import PartitionCoordinator
from storage.memory_store import MemoryIndexStore
from conftest import CORPUS, SCENARIO, build_memory_store


class BrokenStore(MemoryIndexStore):
    """Índice cuya lectura siempre falla."""

    def resolve_words(self, terms, case_sensitive=False):
        raise IndexStoreError("database disk image is malformed")


def shard_app(docs=CORPUS, instance_id="searchapi-test"):
    engine = QueryEngine(build_memory_store(docs, instance_id), instance_id=instance_id)
    return ShardHTTP(engine).create_http_app()


@asynccontextmanager
async def serve(app):
    """Levanta la app en un puerto libre y devuelve un cliente."""
    client = test_utils.TestClient(test_utils.TestServer(app))
    await client.start_server()
    try:
        yield client
    finally:
        await client.close()


def base_url(client: test_utils.TestClient) -> str:
    return str(client.server.make_url(""))


# ══════════════════════════════════════════════════════════
# API del shard
# ══════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_shard_search():
    async with serve(shard_app(SCENARIO)) as client:
        resp = await client.get("/api/search", params={"query": "apple banana", "limit": "10"})
        assert resp.status == 200
        data = await resp.json()

    assert data["instanceId"] == "searchapi-test"
    assert data["query"] == ["apple", "banana"]
    assert data["totalDocuments"] == 2
    assert data["returnedDocuments"] == 2
    assert data["isTruncated"] is False
    assert data["totalHits"] == 6
    assert data["returnedHits"] == 6
    assert data["ignored"] == []
    assert [h["document"]["id"] for h in data["documentHits"]] == [10, 11]
    assert data["documentHits"][0]["noOfHits"] == 3
    assert data["documentHits"][0]["missing"] == ["banana"]
    assert data["documentHits"][0]["document"]["indexTime"] == "2024-05-01 10:00:00"
    assert "failedShards" not in data


@pytest.mark.asyncio
async def test_shard_search_options():
    async with serve(shard_app()) as client:
        resp = await client.get("/api/search", params={
            "query": "TEST", "caseSensitive": "true", "includeTimestamps": "false"
        })
        data = await resp.json()
        assert data["ignored"] == ["TEST"]
        assert data["totalDocuments"] == 0

        resp = await client.get("/api/search", params={
            "query": "apple", "includeTimestamps": "false", "limit": "1"
        })
        data = await resp.json()
        assert data["isTruncated"] is True
        assert data["documentHits"][0]["document"]["creationTime"] is None


@pytest.mark.asyncio
async def test_shard_search_empty_limit_is_unlimited():
    docs = {i: (f"/d/{i}.txt", ["apple"]) for i in range(1, 31)}
    async with serve(shard_app(docs)) as client:
        default = await (await client.get("/api/search", params={"query": "apple"})).json()
        unlimited = await (await client.get(
            "/api/search", params={"query": "apple", "limit": ""}
        )).json()

    assert default["returnedDocuments"] == 20
    assert unlimited["returnedDocuments"] == 30


@pytest.mark.asyncio
@pytest.mark.parametrize("params,parameter", [
    ({}, "query"),
    ({"query": "   "}, "query"),
    ({"query": "apple", "limit": "abc"}, "limit"),
    ({"query": "apple", "limit": "-3"}, "limit"),
    ({"query": "apple", "caseSensitive": "maybe"}, "caseSensitive"),
])
async def test_shard_search_validation(params, parameter):
    async with serve(shard_app()) as client:
        resp = await client.get("/api/search", params=params)
        assert resp.status == 400
        data = await resp.json()

    assert data["parameter"] == parameter


@pytest.mark.asyncio
async def test_shard_index_error_is_opaque():
    engine = QueryEngine(BrokenStore("broken"), instance_id="broken")
    async with serve(ShardHTTP(engine).create_http_app()) as client:
        resp = await client.get("/api/search", params={"query": "apple"})
        assert resp.status == 500
        data = await resp.json()

    assert data["error"] == "index_store_error"
    assert data["incidentId"]
    assert "malformed" not in data["message"]


@pytest.mark.asyncio
async def test_shard_pattern_search():
    async with serve(shard_app()) as client:
        resp = await client.get("/api/search/pattern", params={"pattern": "te*", "limit": "2"})
        assert resp.status == 200
        data = await resp.json()

        missing = await client.get("/api/search/pattern")
        assert missing.status == 400

        blank = await (await client.get("/api/search/pattern", params={"pattern": " "})).json()

    assert data["pattern"] == "te*"
    assert [h["document"]["id"] for h in data["hits"]] == [3, 2]
    assert data["hits"][0]["matchingWords"] == ["te", "testing"]
    assert data["totalDocuments"] == 4
    assert data["returnedDocuments"] == 2
    assert data["isTruncated"] is True
    assert blank["hits"] == []


@pytest.mark.asyncio
async def test_shard_health_status_metrics():
    async with serve(shard_app()) as client:
        health = await (await client.get("/api/health")).json()
        status = await (await client.get("/api/status")).json()
        await client.get("/api/search", params={"query": "apple"})
        metrics = await client.get("/metrics")
        body = await metrics.text()

    assert health["status"] == "healthy"
    assert health["instanceId"] == "searchapi-test"
    assert status["index"]["documents"] == 5
    assert metrics.status == 200
    assert "shardsearch_search_requests_total" in body
    assert "shardsearch_index_size" in body


# ══════════════════════════════════════════════════════════
# Cliente HTTP de shard
# ══════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_http_client_round_trip():
    async with serve(shard_app()) as server:
        shard = HTTPShardClient("s1", base_url(server), timeout=2.0)
        try:
            result = await shard.query(ShardRequest.search(["apple"], SearchOptions()))
            pattern = await shard.query(ShardRequest.pattern("t?st", SearchOptions()))
            health = await shard.health()
        finally:
            await shard.stop()

    assert [h.document.id for h in result.returned_documents] == [5, 1]
    assert all(h.shard_id == "s1" for h in result.returned_documents)
    assert result.returned_documents[0].document.url == "/data/medium/7.txt"
    assert [h.document.id for h in pattern.hits] == [2, 1]
    assert health["status"] == "healthy"


async def _malformed(request):
    return web.Response(text="<html>not json</html>")


async def _server_error(request):
    return web.Response(status=500, text="boom")


async def _wrong_shape(request):
    return web.json_response({"totalDocuments": "many"})


@pytest.mark.asyncio
@pytest.mark.parametrize("handler", [_malformed, _server_error, _wrong_shape])
async def test_http_client_bad_responses(handler):
    app = web.Application()
    app.router.add_get("/api/search", handler)

    async with serve(app) as server:
        shard = HTTPShardClient("bad", base_url(server), timeout=2.0)
        try:
            result = await shard.query(ShardRequest.search(["apple"], SearchOptions()))
        finally:
            await shard.stop()

    assert isinstance(result, ShardFailure)
    assert result.kind == "unavailable"
    assert result.shard_id == "bad"


@pytest.mark.asyncio
async def test_http_client_unreachable():
    shard = HTTPShardClient("dead", "http://127.0.0.1:1", timeout=2.0)
    try:
        result = await shard.query(ShardRequest.search(["apple"], SearchOptions()))
        health = await shard.health()
    finally:
        await shard.stop()

    assert isinstance(result, ShardFailure)
    assert result.kind == "unavailable"
    assert health is None


# ══════════════════════════════════════════════════════════
# API del coordinador
# ══════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_coordinator_end_to_end():
    shard_a = {1: ("/a/1.txt", ["apple", "apple"])}
    shard_b = {1: ("/b/1.txt", ["apple", "apple", "apple"]), 2: ("/b/2.txt", ["tent"])}

    async with serve(shard_app(shard_a, "a")) as a, serve(shard_app(shard_b, "b")) as b:
        clients = build_http_clients([
            ShardConfig("shard-a", base_url(a)),
            ShardConfig("shard-b", base_url(b)),
            ShardConfig("shard-dead", "http://127.0.0.1:1"),
        ], timeout=2.0)
        coordinator = PartitionCoordinator(clients, instance_id="coord")

        async with serve(CoordinatorHTTP(coordinator).create_http_app()) as client:
            data = await (await client.get(
                "/api/coordinator", params={"query": "apple te"}
            )).json()
            pattern = await (await client.get(
                "/api/coordinator/pattern", params={"pattern": "te*"}
            )).json()
            ping = await (await client.get("/api/coordinator/ping")).json()
            health = await (await client.get("/api/coordinator/health")).json()
            invalid = await client.get("/api/coordinator")

    assert data["instanceId"] == "coord"
    assert [(h["shardId"], h["document"]["id"]) for h in data["documentHits"]] == [
        ("shard-b", 1), ("shard-a", 1)
    ]
    assert data["totalDocuments"] == 2
    assert data["totalHits"] == 5
    assert data["ignored"] == ["te"]
    assert data["failedShards"] == ["shard-dead"]

    assert [h["shardId"] for h in pattern["hits"]] == ["shard-b"]
    assert pattern["failedShards"] == ["shard-dead"]

    assert ping["shards"] == ["shard-a", "shard-b", "shard-dead"]
    assert health["status"] == "degraded"
    assert health["shards"]["shard-dead"] == "unreachable"
    assert health["shards"]["shard-a"] == "healthy"

    assert invalid.status == 400
