"""
Cluster-level merge passes.

The oracle returns a bounded top-K per query, so two components of the same
person can stay apart after the first partition when no single search surfaced
the link. A merge pass samples a few faces of every cluster, searches them
again and joins clusters whose samples hit each other.

The schedule (``ClusteringOptions.merge_threshold_offsets``) is a heuristic:
the default runs a pass at the caller's threshold and a looser one five points
lower. More passes cost more oracle calls and raise the false-merge risk; no
fixed point is guaranteed.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from facegroup.schemas.clustering import ClusteringOptions
from facegroup.services.face_oracle import FaceOracle
from facegroup.services.similarity_graph import search_neighbours
from facegroup.services.union_find import UnionFind

log = logging.getLogger("facegroup.clustering.merge")


async def merge_similar_clusters(
    oracle: FaceOracle,
    collection_id: str,
    clusters: Sequence[List[str]],
    threshold: float,
    options: Optional[ClusteringOptions] = None,
) -> List[List[str]]:
    if len(clusters) <= 1:
        return [list(c) for c in clusters]
    options = options or ClusteringOptions()

    log.info("Merging %s clusters with threshold %.1f%%", len(clusters), threshold)

    cluster_of: Dict[str, int] = {}
    for index, face_ids in enumerate(clusters):
        for face_id in face_ids:
            cluster_of[face_id] = index

    uf: UnionFind[int] = UnionFind(range(len(clusters)))
    merges = 0
    for index, face_ids in enumerate(clusters):
        for probe in face_ids[:options.probes_per_cluster]:
            matches = await search_neighbours(
                oracle, collection_id, probe, threshold, options.max_candidates,
            )
            for match in matches:
                other = cluster_of.get(match.matched_face_id)
                if other is not None and other != index:
                    if uf.find(index) != uf.find(other):
                        merges += 1
                    uf.union(index, other)
            if options.probe_delay_seconds:
                await asyncio.sleep(options.probe_delay_seconds)

    merged = [
        [face_id for index in group for face_id in clusters[index]]
        for group in uf.groups(range(len(clusters)))
    ]
    log.info("Merged to %s clusters (%s unions)", len(merged), merges)
    return merged


async def run_merge_passes(
    oracle: FaceOracle,
    collection_id: str,
    clusters: Sequence[List[str]],
    threshold: float,
    options: Optional[ClusteringOptions] = None,
) -> List[List[str]]:
    """Apply every configured merge pass in order."""
    options = options or ClusteringOptions()
    result = [list(c) for c in clusters]
    for pass_number, offset in enumerate(options.merge_threshold_offsets):
        if pass_number > 0 and len(result) <= 1:
            break
        result = await merge_similar_clusters(oracle, collection_id, result, threshold - offset, options)
    return result
