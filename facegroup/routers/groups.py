from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from facegroup.config import settings
from facegroup.core.rate_limit import limiter
from facegroup.schemas.cluster import ClusterOut, FaceGroupingRequest, JobOut, ReclusterOut
from facegroup.services.clusters import list_clusters_with_samples
from facegroup.services.face_clustering import FaceClusteringService, get_clustering_service
from facegroup.services.groups import require_admin
from facegroup.services.queue import JOBS_BACKEND, enqueue_face_grouping
from facegroup.services.recluster import recluster_group
from facegroup.services.security import AuthUser, require_user

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get("/{group_id}/clusters", response_model=List[ClusterOut])
async def list_clusters(group_id: UUID, auth: AuthUser = Depends(require_user)):
    return await list_clusters_with_samples(group_id, auth.user_id)


@router.post("/{group_id}/recluster", response_model=ReclusterOut)
@limiter.limit(settings.RECLUSTER_RATE_LIMIT)
async def recluster(
    request: Request,
    group_id: UUID,
    auth: AuthUser = Depends(require_user),
    clustering: FaceClusteringService = Depends(get_clustering_service),
):
    """Discard and rebuild every cluster of the group (admins only)."""
    report = await recluster_group(group_id, auth.user_id, clustering)
    return ReclusterOut(total_clusters=report.total_clusters, total_faces=report.total_faces)


@router.post("/{group_id}/face-grouping", response_model=JobOut, status_code=202)
async def face_grouping(
    group_id: UUID,
    body: FaceGroupingRequest,
    background: BackgroundTasks,
    auth: AuthUser = Depends(require_user),
):
    await require_admin(group_id, auth.user_id)
    job_id = enqueue_face_grouping(str(group_id), [str(f) for f in body.face_ids], background)
    return JobOut(job_id=job_id, backend=JOBS_BACKEND)
