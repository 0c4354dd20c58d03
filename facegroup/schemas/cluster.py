from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class BoundingBox(BaseModel):
    x: float
    y: float
    width: float
    height: float


class SampleFace(BaseModel):
    face_id: UUID
    media_id: UUID
    quality_score: int
    bounding_box: BoundingBox


class ClusterOut(BaseModel):
    id: UUID
    cluster_name: Optional[str] = None
    appearance_count: int
    confidence: float
    created_at: datetime
    total_photos: int = 0
    sample_face: Optional[SampleFace] = None


class ClusterRename(BaseModel):
    cluster_name: Optional[str] = Field(None, max_length=50)


class ClusterFaceOut(BaseModel):
    face_id: UUID
    media_id: UUID
    confidence: float
    quality_score: int
    bounding_box: BoundingBox


class ClusterFacesPage(BaseModel):
    cluster_id: UUID
    page: int
    limit: int
    total: int
    items: List[ClusterFaceOut]


class ReclusterOut(BaseModel):
    total_clusters: int
    total_faces: int
    message: str = "Faces re-clustered successfully"


class FaceGroupingRequest(BaseModel):
    face_ids: List[UUID] = Field(..., min_length=1)


class JobOut(BaseModel):
    job_id: Optional[str] = None
    backend: str
