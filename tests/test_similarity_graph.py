import asyncio
from types import SimpleNamespace

import pytest

from facegroup.core.errors import CollectionNotFoundError
from facegroup.schemas.clustering import ClusteringOptions
from facegroup.services import similarity_graph
from facegroup.services.similarity_graph import build_similarity_graph, search_neighbours

from fakes import FAST, FakeOracle


@pytest.fixture
def pauses(monkeypatch):
    recorded = []

    async def fake_sleep(seconds):
        recorded.append(seconds)

    monkeypatch.setattr(similarity_graph, "asyncio", SimpleNamespace(gather=asyncio.gather, ensure_future=asyncio.ensure_future, sleep=fake_sleep))
    return recorded


async def test_neighbours_drop_self_and_low_scores():
    oracle = FakeOracle({("a", "b"): 92, ("a", "c"): 70})
    oracle.table["a"]["a"] = 100

    matches = await search_neighbours(oracle, "col", "a", threshold=85, max_candidates=10)

    assert [(m.source_face_id, m.matched_face_id, m.similarity) for m in matches] == [("a", "b", 92)]


async def test_neighbours_restricted_to_allowed_set():
    oracle = FakeOracle({("a", "b"): 92, ("a", "z"): 99})
    matches = await search_neighbours(oracle, "col", "a", 85, 10, allowed={"a", "b"})
    assert [m.matched_face_id for m in matches] == ["b"]


async def test_failed_search_means_no_neighbours():
    oracle = FakeOracle({("a", "b"): 92}, failing={"a"})
    assert await search_neighbours(oracle, "col", "a", 85, 10) == []


async def test_missing_collection_propagates():
    oracle = FakeOracle({("a", "b"): 92}, missing_collection=True)
    with pytest.raises(CollectionNotFoundError):
        await search_neighbours(oracle, "col", "a", 85, 10)


async def test_graph_has_one_entry_per_face():
    oracle = FakeOracle({("a", "b"): 90, ("b", "c"): 88})
    graph = await build_similarity_graph(oracle, "col", ["a", "b", "c", "d"], 85, FAST)

    assert list(graph) == ["a", "b", "c", "d"]
    assert {m.matched_face_id for m in graph["b"]} == {"a", "c"}
    assert graph["d"] == []
    assert len(oracle.calls) == 4


async def test_failed_face_still_gets_empty_entry():
    oracle = FakeOracle({("a", "b"): 90}, failing={"b"})
    graph = await build_similarity_graph(oracle, "col", ["a", "b"], 85, FAST)
    assert graph["b"] == []
    assert [m.matched_face_id for m in graph["a"]] == ["b"]


async def test_pauses_between_batches_only(pauses):
    oracle = FakeOracle({})
    options = ClusteringOptions(search_batch_size=2, batch_pause_seconds=0.5, probe_delay_seconds=0)

    await build_similarity_graph(oracle, "col", ["a", "b", "c", "d", "e"], 85, options)

    # batches [a, b] [c, d] [e]
    assert pauses == [0.5, 0.5]
    assert len(oracle.calls) == 5


async def test_threshold_is_passed_to_the_oracle():
    oracle = FakeOracle({})
    await build_similarity_graph(oracle, "col-1", ["a"], 77, FAST)
    assert oracle.calls == [("col-1", "a", 77)]


class SlowOracle(FakeOracle):
    """Tracks how many searches are in flight at once."""

    def __init__(self, pairs, delay=0.01, **kwargs):
        super().__init__(pairs, **kwargs)
        self.delay = delay
        self.in_flight = 0
        self.peak = 0
        self.cancelled = []

    async def search_similar_faces(self, collection_id, face_id, max_candidates, threshold):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            return await super().search_similar_faces(collection_id, face_id, max_candidates, threshold)
        except asyncio.CancelledError:
            self.cancelled.append(face_id)
            raise
        finally:
            self.in_flight -= 1


async def test_at_most_one_batch_in_flight():
    oracle = SlowOracle({})
    options = ClusteringOptions(search_batch_size=5, batch_pause_seconds=0, probe_delay_seconds=0)

    await build_similarity_graph(oracle, "col", [f"f{i}" for i in range(12)], 85, options)

    assert oracle.peak == 5
    assert len(oracle.calls) == 12


class BrokenOracle(FakeOracle):
    async def search_similar_faces(self, collection_id, face_id, max_candidates, threshold):
        if face_id == "c":
            raise TimeoutError("oracle timed out")
        if face_id == "d":
            raise RuntimeError("unexpected payload")
        return await super().search_similar_faces(collection_id, face_id, max_candidates, threshold)


async def test_any_search_failure_means_no_neighbours():
    oracle = BrokenOracle({("a", "b"): 90, ("a", "c"): 95})
    graph = await build_similarity_graph(oracle, "col", ["a", "b", "c", "d"], 85, FAST)

    assert graph["c"] == []
    assert graph["d"] == []
    assert {m.matched_face_id for m in graph["a"]} == {"b", "c"}


async def test_missing_collection_cancels_rest_of_batch():
    class GoneOracle(SlowOracle):
        async def search_similar_faces(self, collection_id, face_id, max_candidates, threshold):
            if face_id == "gone":
                raise CollectionNotFoundError("Face collection 'col' not found")
            return await super().search_similar_faces(collection_id, face_id, max_candidates, threshold)

    oracle = GoneOracle({}, delay=5)
    with pytest.raises(CollectionNotFoundError):
        await build_similarity_graph(oracle, "col", ["a", "gone", "b"], 85, FAST)

    assert sorted(oracle.cancelled) == ["a", "b"]
    assert oracle.in_flight == 0
