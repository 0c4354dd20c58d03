"""
Incremental grouping of freshly detected faces.

Runs per upload batch from the job queue: the batch's unprocessed faces are
clustered among themselves; only groupings of two or more faces are stored
(single appearances are left out as noise) and every face in the batch is
marked processed afterwards.
"""

import logging
from typing import Optional, Sequence

from pydantic import BaseModel
from tortoise.transactions import in_transaction

from facegroup.config import settings
from facegroup.core.errors import ConflictError
from facegroup.models import Face, Group
from facegroup.services import cache, membership
from facegroup.services.face_clustering import FaceClusteringService
from facegroup.services.groups import get_group
from facegroup.services.quality import assign_quality_score

log = logging.getLogger("facegroup.grouping")


class FaceGroupingReport(BaseModel):
    clusters_created: int = 0
    faces_grouped: int = 0
    faces_skipped: int = 0


async def group_new_faces(
    group_id,
    face_ids: Sequence,
    clustering: FaceClusteringService,
    threshold: Optional[float] = None,
) -> FaceGroupingReport:
    group = await get_group(group_id)
    version = group.cluster_version
    threshold = threshold if threshold is not None else settings.CLUSTER_SIMILARITY_THRESHOLD

    faces = await Face.filter(id__in=list(face_ids), media__group_id=group.id, processed=False).all()
    if not faces:
        log.info("No unprocessed faces found for group %s", group.id)
        return FaceGroupingReport()

    for face in faces:
        if face.quality_score is None:
            await assign_quality_score(face)

    by_oracle_id = {face.oracle_face_id: face for face in faces}
    log.info("Grouping %s new faces for group %s", len(faces), group.id)
    result = await clustering.cluster_faces(
        group.face_collection_id, list(by_oracle_id), threshold, kind="incremental",
    )

    report = FaceGroupingReport(faces_skipped=len(result.unclustered_faces))
    async with in_transaction() as conn:
        bumped = await Group.filter(id=group.id, cluster_version=version).using_db(conn).update(
            cluster_version=version + 1
        )
        if not bumped:
            raise ConflictError("Cluster state changed while grouping; retry")

        for cluster in result.clusters:
            members = [by_oracle_id[f] for f in cluster.face_ids if f in by_oracle_id]
            if len(members) < 2:
                continue
            confidence = cluster.average_similarity / 100
            await membership.create_cluster(
                group.id,
                membership.face_pairs(members, confidence),
                confidence=confidence,
                using_db=conn,
            )
            report.clusters_created += 1
            report.faces_grouped += len(members)

        await Face.filter(id__in=[f.id for f in faces]).using_db(conn).update(processed=True)

    await cache.invalidate_group_clusters(group.id)
    log.info(
        "Grouped %s faces into %s clusters for group %s; skipped %s single appearances",
        report.faces_grouped,
        report.clusters_created,
        group.id,
        report.faces_skipped,
    )
    return report
