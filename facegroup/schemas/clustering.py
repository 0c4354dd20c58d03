from typing import Dict, List, NamedTuple, Tuple
from pydantic import BaseModel, Field

from facegroup.config import settings


class FaceMatch(NamedTuple):
    source_face_id: str
    matched_face_id: str
    similarity: float


# face id -> matches found when that face was the query
SimilarityGraph = Dict[str, List[FaceMatch]]


class ClusteringOptions(BaseModel):
    max_candidates: int = 100
    search_batch_size: int = Field(5, ge=1)
    batch_pause_seconds: float = Field(1.0, ge=0)
    probes_per_cluster: int = Field(3, ge=1)
    probe_delay_seconds: float = Field(0.15, ge=0)
    # one merge pass per offset at (threshold - offset); later passes only
    # run while more than one cluster is left
    merge_threshold_offsets: Tuple[float, ...] = (0.0, 5.0)

    @classmethod
    def from_settings(cls) -> "ClusteringOptions":
        return cls(
            max_candidates=settings.CLUSTER_MAX_CANDIDATES,
            search_batch_size=settings.CLUSTER_SEARCH_BATCH_SIZE,
            batch_pause_seconds=settings.CLUSTER_BATCH_PAUSE_SECONDS,
            probes_per_cluster=settings.CLUSTER_PROBES_PER_CLUSTER,
            probe_delay_seconds=settings.CLUSTER_PROBE_DELAY_SECONDS,
            merge_threshold_offsets=settings.merge_threshold_offsets,
        )


class EnrichedCluster(BaseModel):
    face_ids: List[str]
    representative_face_id: str
    average_similarity: float
    size: int


class ClusterResult(BaseModel):
    clusters: List[EnrichedCluster] = []
    unclustered_faces: List[str] = []
