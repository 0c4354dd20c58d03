"""
Single write path for cluster membership.

``FaceCluster.appearance_count`` is stored, not derived, so every code path
that adds or removes ``FaceClusterMember`` rows goes through these helpers and
the count moves together with the rows.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from tortoise import BaseDBAsyncClient

from facegroup.models import Face, FaceCluster, FaceClusterMember


async def create_cluster(
    group_id,
    faces: Sequence[Tuple[Face, float]],
    confidence: float,
    cluster_name: Optional[str] = None,
    using_db: Optional[BaseDBAsyncClient] = None,
) -> FaceCluster:
    """Create a cluster with one member row per ``(face, member_confidence)``."""
    cluster = await FaceCluster.create(
        group_id=group_id,
        appearance_count=len(faces),
        confidence=confidence,
        cluster_name=cluster_name,
        using_db=using_db,
    )
    if faces:
        await FaceClusterMember.bulk_create(
            [FaceClusterMember(cluster=cluster, face=face, confidence=conf) for face, conf in faces],
            using_db=using_db,
        )
    return cluster


async def move_members(
    source: FaceCluster,
    target: FaceCluster,
    using_db: Optional[BaseDBAsyncClient] = None,
) -> int:
    """Re-create every member of ``source`` on ``target``, keeping confidences.

    Source rows are removed first since a face can only belong to one cluster.
    Returns the number of rows moved; both counters are updated in memory and
    on disk.
    """
    members: List[FaceClusterMember] = await _members_of(source.id, using_db).all()

    await _members_of(source.id, using_db).delete()
    if members:
        await FaceClusterMember.bulk_create(
            [FaceClusterMember(cluster_id=target.id, face_id=m.face_id, confidence=m.confidence) for m in members],
            using_db=using_db,
        )

    source.appearance_count -= len(members)
    target.appearance_count += len(members)
    await source.save(update_fields=["appearance_count"], using_db=using_db)
    await target.save(update_fields=["appearance_count"], using_db=using_db)
    return len(members)


async def remove_cluster(cluster: FaceCluster, using_db: Optional[BaseDBAsyncClient] = None) -> int:
    """Delete a cluster together with its member rows."""
    removed = await _members_of(cluster.id, using_db).delete()
    await cluster.delete(using_db=using_db)
    return removed


async def remove_group_clusters(group_id, using_db: Optional[BaseDBAsyncClient] = None) -> int:
    """Delete every cluster of a group and its members; returns clusters removed."""
    cluster_ids = await _clusters_of(group_id, using_db).values_list("id", flat=True)
    if not cluster_ids:
        return 0
    members = FaceClusterMember.filter(cluster_id__in=list(cluster_ids))
    if using_db is not None:
        members = members.using_db(using_db)
    await members.delete()
    await _clusters_of(group_id, using_db).delete()
    return len(cluster_ids)


async def recount(cluster: FaceCluster, using_db: Optional[BaseDBAsyncClient] = None) -> int:
    """Resynchronise ``appearance_count`` from the member rows."""
    cluster.appearance_count = await _members_of(cluster.id, using_db).count()
    await cluster.save(update_fields=["appearance_count"], using_db=using_db)
    return cluster.appearance_count


def _members_of(cluster_id, using_db):
    qs = FaceClusterMember.filter(cluster_id=cluster_id)
    return qs.using_db(using_db) if using_db is not None else qs


def _clusters_of(group_id, using_db):
    qs = FaceCluster.filter(group_id=group_id)
    return qs.using_db(using_db) if using_db is not None else qs


def face_pairs(faces: Iterable[Face], confidence: float) -> List[Tuple[Face, float]]:
    return [(face, confidence) for face in faces]
