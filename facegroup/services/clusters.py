"""
Read and housekeeping operations on a group's clusters: listing with a sample
face, rename, delete, and paging through a cluster's faces.
"""

import logging
from typing import List

from tortoise.transactions import in_transaction

from facegroup.core.errors import BadRequestError, NotFoundError
from facegroup.models import CLUSTER_NAME_MAX_LENGTH, Face, FaceCluster, FaceClusterMember
from facegroup.schemas.cluster import ClusterFaceOut, ClusterFacesPage, ClusterOut, SampleFace
from facegroup.services import cache, membership
from facegroup.services.groups import require_admin, require_member
from facegroup.services.quality import score_face

log = logging.getLogger("facegroup.clusters")


async def _get_cluster(cluster_id) -> FaceCluster:
    cluster = await FaceCluster.filter(id=cluster_id).first()
    if not cluster:
        raise NotFoundError("Cluster not found")
    return cluster


async def _describe(cluster: FaceCluster) -> ClusterOut:
    face_ids = await FaceClusterMember.filter(cluster_id=cluster.id).values_list("face_id", flat=True)
    faces: List[Face] = await Face.filter(id__in=list(face_ids)).all() if face_ids else []
    out = ClusterOut(
        id=cluster.id,
        cluster_name=cluster.cluster_name,
        appearance_count=cluster.appearance_count,
        confidence=cluster.confidence,
        created_at=cluster.created_at,
        total_photos=len({f.media_id for f in faces}),
    )
    if faces:
        best = max(faces, key=score_face)
        out.sample_face = SampleFace(
            face_id=best.id,
            media_id=best.media_id,
            quality_score=score_face(best),
            bounding_box=best.bounding_box,
        )
    return out


async def list_clusters_with_samples(group_id, user_id) -> List[ClusterOut]:
    """Clusters of a group, largest first, each with its best-quality face."""
    await require_member(group_id, user_id)

    key = cache.clusters_by_group_key(group_id)
    cached = await cache.cache_get_json(key)
    if cached is not None:
        return [ClusterOut.model_validate(item) for item in cached]

    clusters = await FaceCluster.filter(group_id=group_id).all()
    out = [await _describe(c) for c in clusters]
    out.sort(key=lambda c: (c.appearance_count, c.created_at), reverse=True)

    await cache.cache_set_json(key, [c.model_dump(mode="json") for c in out])
    return out


async def rename_cluster(cluster_id, user_id, cluster_name) -> FaceCluster:
    if cluster_name and len(cluster_name) > CLUSTER_NAME_MAX_LENGTH:
        raise BadRequestError(f"Cluster name must be {CLUSTER_NAME_MAX_LENGTH} characters or less")
    cluster = await _get_cluster(cluster_id)
    await require_member(cluster.group_id, user_id)

    cluster.cluster_name = (cluster_name or "").strip() or None
    await cluster.save(update_fields=["cluster_name", "modified_at"])
    await cache.invalidate_group_clusters(cluster.group_id)
    return cluster


async def delete_cluster(cluster_id, user_id) -> None:
    cluster = await _get_cluster(cluster_id)
    await require_admin(cluster.group_id, user_id, "Admin access required to delete clusters")

    async with in_transaction() as conn:
        removed = await membership.remove_cluster(cluster, using_db=conn)
    await cache.invalidate_group_clusters(cluster.group_id)
    log.info("Deleted cluster %s with %s members", cluster.id, removed)


async def list_cluster_faces(cluster_id, user_id, page: int = 1, limit: int = 20) -> ClusterFacesPage:
    cluster = await _get_cluster(cluster_id)
    await require_member(cluster.group_id, user_id)

    page = max(1, page)
    limit = max(1, min(limit, 100))
    query = FaceClusterMember.filter(cluster_id=cluster.id)
    total = await query.count()
    members = await query.order_by("-confidence", "created_at", "id").offset((page - 1) * limit).limit(limit).prefetch_related("face")
    return ClusterFacesPage(
        cluster_id=cluster.id,
        page=page,
        limit=limit,
        total=total,
        items=[
            ClusterFaceOut(
                face_id=m.face.id,
                media_id=m.face.media_id,
                confidence=m.confidence,
                quality_score=score_face(m.face),
                bounding_box=m.face.bounding_box,
            )
            for m in members
        ],
    )
