from uuid import UUID

from fastapi import APIRouter, Depends, Query

from facegroup.schemas.cluster import ClusterFacesPage, ClusterRename
from facegroup.services import clusters as cluster_service
from facegroup.services.cluster_merge import merge_clusters
from facegroup.services.security import AuthUser, require_user

router = APIRouter(prefix="/clusters", tags=["clusters"])


def _cluster_dict(c) -> dict:
    return {
        "id": str(c.id),
        "group_id": str(c.group_id),
        "cluster_name": c.cluster_name,
        "appearance_count": c.appearance_count,
        "confidence": c.confidence,
    }


@router.patch("/{cluster_id}")
async def rename_cluster(cluster_id: UUID, body: ClusterRename, auth: AuthUser = Depends(require_user)):
    cluster = await cluster_service.rename_cluster(cluster_id, auth.user_id, body.cluster_name)
    return {"data": _cluster_dict(cluster), "message": "Cluster updated successfully"}


@router.delete("/{cluster_id}")
async def delete_cluster(cluster_id: UUID, auth: AuthUser = Depends(require_user)):
    await cluster_service.delete_cluster(cluster_id, auth.user_id)
    return {"ok": True, "message": "Cluster deleted successfully"}


@router.post("/{cluster_id}/merge/{target_cluster_id}")
async def merge(cluster_id: UUID, target_cluster_id: UUID, auth: AuthUser = Depends(require_user)):
    merged = await merge_clusters(cluster_id, target_cluster_id, auth.user_id)
    return {"data": _cluster_dict(merged), "message": "Clusters merged successfully"}


@router.get("/{cluster_id}/faces", response_model=ClusterFacesPage)
async def cluster_faces(
    cluster_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    auth: AuthUser = Depends(require_user),
):
    return await cluster_service.list_cluster_faces(cluster_id, auth.user_id, page, limit)
