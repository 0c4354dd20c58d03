"""
Similarity graph over the faces of one clustering run.

Each face is searched against the oracle collection once. Searches go out in
small concurrent batches with a pause between batches so the oracle's rate
limit holds. The graph is directed: an edge A->B exists when B came back for
query A. Both directions are usually present but nothing depends on that.
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Set

from facegroup.core.errors import CollectionNotFoundError
from facegroup.schemas.clustering import ClusteringOptions, FaceMatch, SimilarityGraph
from facegroup.services import metrics
from facegroup.services.face_oracle import FaceOracle

log = logging.getLogger("facegroup.clustering.graph")


async def search_neighbours(
    oracle: FaceOracle,
    collection_id: str,
    face_id: str,
    threshold: float,
    max_candidates: int,
    allowed: Optional[Set[str]] = None,
) -> List[FaceMatch]:
    """Matches for one face at or above threshold, restricted to ``allowed``.

    A failed search is logged and reported as no neighbours; only a missing
    collection stops the run.
    """
    try:
        candidates = await oracle.search_similar_faces(collection_id, face_id, max_candidates, threshold)
    except CollectionNotFoundError:
        raise
    except Exception as exc:
        log.warning("Similarity search failed for face %s: %s", face_id, exc)
        metrics.record_oracle_query("error")
        return []
    metrics.record_oracle_query("ok")
    return [
        FaceMatch(face_id, c.face_id, c.similarity)
        for c in candidates
        if c.face_id != face_id
        and c.similarity >= threshold
        and (allowed is None or c.face_id in allowed)
    ]


async def build_similarity_graph(
    oracle: FaceOracle,
    collection_id: str,
    face_ids: Sequence[str],
    threshold: float,
    options: Optional[ClusteringOptions] = None,
) -> SimilarityGraph:
    options = options or ClusteringOptions()
    allowed = set(face_ids)
    graph: SimilarityGraph = {}
    batch_size = options.search_batch_size

    for start in range(0, len(face_ids), batch_size):
        batch = face_ids[start:start + batch_size]
        tasks = [
            asyncio.ensure_future(
                search_neighbours(oracle, collection_id, face_id, threshold, options.max_candidates, allowed)
            )
            for face_id in batch
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            # a fatal error in one search abandons the rest of the batch
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        for face_id, matches in zip(batch, results):
            graph[face_id] = matches

        if start + batch_size < len(face_ids) and options.batch_pause_seconds:
            await asyncio.sleep(options.batch_pause_seconds)

    edges = sum(len(m) for m in graph.values())
    log.info("Similarity graph for %s faces at %.1f%%: %s edges", len(face_ids), threshold, edges)
    return graph
