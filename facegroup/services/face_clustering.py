"""
Face clustering engine.

Partitions a set of faces into people using nothing but pairwise similarity
from the face oracle:

1. similarity graph: one bounded top-K search per face
2. connected components over that graph (union-find)
3. cluster-level merge passes on sampled faces
4. per-cluster statistics from the graph of step 1
5. size-1 clusters are reported as unclustered faces

Results are not bit-for-bit reproducible across runs because oracle scores and
candidate order can jitter.
"""

import logging
import time
from typing import Optional, Sequence

from facegroup.schemas.clustering import ClusteringOptions, ClusterResult
from facegroup.services import metrics
from facegroup.services.cluster_enrichment import enrich_clusters
from facegroup.services.cluster_merger import run_merge_passes
from facegroup.services.face_oracle import FaceOracle, get_face_oracle
from facegroup.services.similarity_graph import build_similarity_graph
from facegroup.services.union_find import find_connected_components

log = logging.getLogger("facegroup.clustering")


class FaceClusteringService:
    def __init__(self, oracle: FaceOracle, options: Optional[ClusteringOptions] = None):
        self.oracle = oracle
        self.options = options or ClusteringOptions.from_settings()

    async def cluster_faces(
        self,
        collection_id: str,
        face_ids: Sequence[str],
        similarity_threshold: float = 85,
        kind: str = "batch",
    ) -> ClusterResult:
        if not face_ids:
            return ClusterResult()

        face_ids = list(dict.fromkeys(face_ids))
        started = time.monotonic()
        log.info(
            "Starting face clustering for %s faces with threshold %.1f%%",
            len(face_ids),
            similarity_threshold,
        )

        graph = await build_similarity_graph(
            self.oracle, collection_id, face_ids, similarity_threshold, self.options,
        )
        clusters = find_connected_components(face_ids, graph)
        clusters = await run_merge_passes(
            self.oracle, collection_id, clusters, similarity_threshold, self.options,
        )
        enriched = enrich_clusters(clusters, graph)

        result = ClusterResult(
            clusters=[c for c in enriched if c.size > 1],
            unclustered_faces=[c.face_ids[0] for c in enriched if c.size == 1],
        )
        metrics.record_clustering_run(kind, time.monotonic() - started)
        log.info(
            "Clustering complete: %s clusters, %s unclustered faces",
            len(result.clusters),
            len(result.unclustered_faces),
        )
        return result


def get_clustering_service() -> FaceClusteringService:
    """FastAPI dependency wiring the engine to the configured oracle."""
    return FaceClusteringService(get_face_oracle())
