import logging

from tortoise.transactions import in_transaction

from facegroup.core.errors import BadRequestError, NotFoundError
from facegroup.models import FaceCluster
from facegroup.services import cache, membership, metrics
from facegroup.services.groups import get_group, require_admin

log = logging.getLogger("facegroup.merge")


def merged_confidence(source: FaceCluster, target: FaceCluster) -> float:
    """Confidence of the union, weighted by each side's appearance count."""
    total = source.appearance_count + target.appearance_count
    if total == 0:
        return target.confidence
    return (
        source.confidence * source.appearance_count
        + target.confidence * target.appearance_count
    ) / total


async def merge_clusters(source_cluster_id, target_cluster_id, user_id) -> FaceCluster:
    """Merge ``source`` into ``target`` on behalf of a group admin.

    The source cluster and its member rows are gone afterwards, so a repeated
    call fails with ``NotFoundError``.
    """
    if not source_cluster_id or not target_cluster_id or not user_id:
        raise BadRequestError("Source cluster ID, target cluster ID, and user ID are required")
    if str(source_cluster_id) == str(target_cluster_id):
        raise BadRequestError("Cannot merge a cluster with itself")

    source = await FaceCluster.filter(id=source_cluster_id).first()
    if not source:
        raise NotFoundError("Source cluster not found")
    target = await FaceCluster.filter(id=target_cluster_id).first()
    if not target:
        raise NotFoundError("Target cluster not found")
    if source.group_id != target.group_id:
        raise BadRequestError("Cannot merge clusters from different groups")

    group = await get_group(source.group_id)
    await require_admin(group.id, user_id, "Only group admins can merge face clusters")

    log.info(
        "Merging cluster %s (%s faces) into %s (%s faces)",
        source.id,
        source.appearance_count,
        target.id,
        target.appearance_count,
    )

    confidence = merged_confidence(source, target)
    async with in_transaction() as conn:
        await membership.move_members(source, target, using_db=conn)
        target.confidence = confidence
        if not target.cluster_name and source.cluster_name:
            target.cluster_name = source.cluster_name
        await target.save(using_db=conn)
        await membership.remove_cluster(source, using_db=conn)

    await cache.invalidate_group_clusters(group.id)
    metrics.record_cluster_merge()
    log.info(
        "Merged clusters: %s now has %s appearances with confidence %.2f",
        target.id,
        target.appearance_count,
        target.confidence,
    )
    return target
