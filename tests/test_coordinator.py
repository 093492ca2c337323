"""
Tests del coordinador scatter-gather.
"""
import asyncio
import time

import pytest

from errors import IndexStoreError, ShardUnavailable
from search.options import SearchOptions
from search.query_engine import QueryEngine
from sharding.shard_client import LocalShardClient, ShardClient, ShardFailure, ShardRequest
from sharding.shard_coordinator import PartitionCoordinator
from conftest import build_memory_store


class SlowShard(ShardClient):
    """Shard que tarda más que cualquier timeout razonable."""

    def __init__(self, shard_id, delay, timeout=5.0):
        super().__init__(shard_id, timeout)
        self.delay = delay
        self.cancelled = False

    async def _execute(self, request):
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        raise AssertionError("no debería terminar")

    async def health(self):
        return None


class FailingShard(ShardClient):
    """Shard que eleva la excepción configurada."""

    def __init__(self, shard_id, error):
        super().__init__(shard_id)
        self.error = error

    async def _execute(self, request):
        raise self.error

    async def health(self):
        return None


def local_shard(shard_id, docs):
    engine = QueryEngine(build_memory_store(docs, shard_id), instance_id=shard_id)
    return LocalShardClient(shard_id, engine)


SHARD_A = {
    1: ("/a/1.txt", ["apple", "apple", "banana"]),
    2: ("/a/2.txt", ["apple"]),
}
SHARD_B = {
    1: ("/b/1.txt", ["apple", "apple", "apple", "apple"]),
    3: ("/b/3.txt", ["kiwi"]),
}


@pytest.mark.asyncio
async def test_search_merges_all_shards():
    coordinator = PartitionCoordinator(
        [local_shard("s1", SHARD_A), local_shard("s2", SHARD_B)]
    )

    result = await coordinator.search(["apple", "kiwi"], SearchOptions(limit=None))

    assert [(h.shard_id, h.document.id, h.no_of_hits) for h in result.returned_documents] == [
        ("s2", 1, 4), ("s1", 1, 2), ("s1", 2, 1), ("s2", 3, 1)
    ]
    assert result.total_documents == 4
    assert result.total_hits == 8
    assert result.failed_shards == []
    # kiwi solo existe en s2: no se reporta como ignorado
    assert result.ignored == []


@pytest.mark.asyncio
async def test_search_ignored_when_unknown_everywhere():
    coordinator = PartitionCoordinator(
        [local_shard("s1", SHARD_A), local_shard("s2", SHARD_B)]
    )

    result = await coordinator.search(["mango", "apple", "kiwi"])

    assert result.ignored == ["mango"]


@pytest.mark.asyncio
async def test_slow_shard_times_out():
    """Un shard lento no retrasa la respuesta más allá de su timeout."""
    coordinator = PartitionCoordinator(
        [local_shard("s1", SHARD_A), SlowShard("slow", delay=10, timeout=0.2)]
    )

    start = time.perf_counter()
    result = await coordinator.search(["apple"])
    elapsed = time.perf_counter() - start

    assert elapsed < 2.0
    assert result.failed_shards == ["slow"]
    assert [h.shard_id for h in result.returned_documents] == ["s1", "s1"]
    assert result.total_documents == 2


@pytest.mark.asyncio
async def test_global_deadline_cancels_stragglers():
    slow = SlowShard("slow", delay=10, timeout=30)
    coordinator = PartitionCoordinator(
        [local_shard("s1", SHARD_A), slow],
        deadline=0.2
    )

    result = await coordinator.search(["apple"])

    assert result.failed_shards == ["slow"]
    assert result.total_documents == 2
    # La cancelación terminó antes de devolver el resultado
    assert slow.cancelled


@pytest.mark.asyncio
async def test_failures_are_reported_not_raised():
    coordinator = PartitionCoordinator([
        local_shard("s1", SHARD_A),
        FailingShard("down", ShardUnavailable("down", "connection refused")),
        FailingShard("broken", IndexStoreError("disk I/O error")),
        FailingShard("crash", RuntimeError("boom")),
    ])

    result = await coordinator.search(["apple"])

    assert result.failed_shards == ["down", "broken", "crash"]
    assert result.total_documents == 2
    assert result.total_hits == 3


@pytest.mark.asyncio
async def test_all_shards_failed():
    coordinator = PartitionCoordinator([
        FailingShard("a", ShardUnavailable("a", "x")),
        FailingShard("b", ShardUnavailable("b", "y")),
    ])

    result = await coordinator.search(["apple"])

    assert result.returned_documents == []
    assert result.total_documents == 0
    assert result.ignored == []
    assert result.failed_shards == ["a", "b"]


@pytest.mark.asyncio
async def test_client_query_converts_failures():
    assert await FailingShard("x", ShardUnavailable("x", "r")).query(
        ShardRequest.search(["a"], SearchOptions())
    ) == ShardFailure("x", "unavailable", "r")

    failure = await SlowShard("y", delay=10, timeout=0.05).query(
        ShardRequest.search(["a"], SearchOptions())
    )
    assert isinstance(failure, ShardFailure)
    assert failure.kind == "timeout"


@pytest.mark.asyncio
async def test_pattern_search_across_shards():
    coordinator = PartitionCoordinator(
        [local_shard("s1", SHARD_A), local_shard("s2", SHARD_B),
         FailingShard("down", ShardUnavailable("down", "x"))]
    )

    result = await coordinator.pattern_search("*an*")

    assert [(h.shard_id, h.document.id) for h in result.hits] == [("s1", 1)]
    assert result.hits[0].matching_words == ["banana"]
    assert result.failed_shards == ["down"]
    assert result.total_documents == 1


@pytest.mark.asyncio
async def test_limit_is_forwarded_not_recut():
    """Cada shard aplica el límite; el coordinador no vuelve a cortar."""
    coordinator = PartitionCoordinator(
        [local_shard("s1", SHARD_A), local_shard("s2", SHARD_B)]
    )

    result = await coordinator.search(["apple"], SearchOptions(limit=1))

    assert [(h.shard_id, h.document.id) for h in result.returned_documents] == [
        ("s2", 1), ("s1", 1)
    ]
    assert result.total_documents == 3
    assert result.is_truncated


@pytest.mark.asyncio
async def test_health():
    coordinator = PartitionCoordinator(
        [local_shard("s1", SHARD_A), SlowShard("slow", delay=0)]
    )

    health = await coordinator.health()

    assert health["s1"]["status"] == "healthy"
    assert health["slow"] is None
