"""
Full rebuild of a group's cluster state.

States::

    IDLE -> FETCHING_FACES -> CLUSTERING -> DELETING_OLD_STATE -> PERSISTING -> DONE
                  +-> ABORTED (no processed faces, or any failure)

Clustering runs before anything is deleted, and the delete plus re-create
happen in one transaction, so a failure at any step leaves the previous
clusters in place. ``Group.cluster_version`` is compared and bumped inside
that transaction: when two rebuilds of the same group overlap, the one that
commits second fails with ``ConflictError`` instead of interleaving writes.
"""

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel
from tortoise.transactions import in_transaction

from facegroup.config import settings
from facegroup.core.errors import BadRequestError, ConflictError
from facegroup.models import Face, Group
from facegroup.services import cache, membership
from facegroup.services.face_clustering import FaceClusteringService
from facegroup.services.groups import get_group, require_admin

log = logging.getLogger("facegroup.recluster")

SINGLETON_CONFIDENCE = 0.5
MEMBER_CONFIDENCE = 1.0


class ReclusterState(str, Enum):
    IDLE = "idle"
    FETCHING_FACES = "fetching_faces"
    CLUSTERING = "clustering"
    DELETING_OLD_STATE = "deleting_old_state"
    PERSISTING = "persisting"
    DONE = "done"
    ABORTED = "aborted"


class ReclusterReport(BaseModel):
    total_clusters: int
    total_faces: int


class ReclusterWorkflow:
    def __init__(self, clustering: FaceClusteringService, threshold: Optional[float] = None):
        self.clustering = clustering
        self.threshold = threshold if threshold is not None else settings.RECLUSTER_SIMILARITY_THRESHOLD
        self.state = ReclusterState.IDLE

    def _enter(self, state: ReclusterState, group_id) -> None:
        log.debug("recluster group=%s %s -> %s", group_id, self.state.value, state.value)
        self.state = state

    async def run(self, group_id, user_id) -> ReclusterReport:
        try:
            return await self._run(group_id, user_id)
        except Exception:
            self.state = ReclusterState.ABORTED
            raise

    async def _run(self, group_id, user_id) -> ReclusterReport:
        group = await get_group(group_id)
        await require_admin(group.id, user_id, "Only group admins can recluster faces")
        version = group.cluster_version

        self._enter(ReclusterState.FETCHING_FACES, group.id)
        faces = await Face.filter(media__group_id=group.id, processed=True).order_by("created_at").all()
        if not faces:
            raise BadRequestError("No faces found to cluster")
        log.info("Re-clustering %s faces for group %s", len(faces), group.id)

        self._enter(ReclusterState.CLUSTERING, group.id)
        by_oracle_id = {face.oracle_face_id: face for face in faces}
        result = await self.clustering.cluster_faces(
            group.face_collection_id,
            list(by_oracle_id),
            self.threshold,
            kind="recluster",
        )

        created = 0
        async with in_transaction() as conn:
            self._enter(ReclusterState.DELETING_OLD_STATE, group.id)
            bumped = await Group.filter(id=group.id, cluster_version=version).using_db(conn).update(
                cluster_version=version + 1
            )
            if not bumped:
                raise ConflictError("Another clustering run finished for this group; retry")
            removed = await membership.remove_group_clusters(group.id, using_db=conn)

            self._enter(ReclusterState.PERSISTING, group.id)
            for cluster in result.clusters:
                members = [by_oracle_id[f] for f in cluster.face_ids if f in by_oracle_id]
                if not members:
                    continue
                await membership.create_cluster(
                    group.id,
                    membership.face_pairs(members, MEMBER_CONFIDENCE),
                    confidence=cluster.average_similarity / 100,
                    using_db=conn,
                )
                created += 1

            for face_id in result.unclustered_faces:
                face = by_oracle_id.get(face_id)
                if face is None:
                    continue
                await membership.create_cluster(
                    group.id,
                    [(face, MEMBER_CONFIDENCE)],
                    confidence=SINGLETON_CONFIDENCE,
                    using_db=conn,
                )
                created += 1

        await cache.invalidate_group_clusters(group.id)
        self._enter(ReclusterState.DONE, group.id)
        log.info(
            "Re-clustering complete for group %s: replaced %s clusters with %s",
            group.id,
            removed,
            created,
        )
        return ReclusterReport(total_clusters=created, total_faces=len(faces))


async def recluster_group(
    group_id,
    user_id,
    clustering: FaceClusteringService,
    threshold: Optional[float] = None,
) -> ReclusterReport:
    return await ReclusterWorkflow(clustering, threshold).run(group_id, user_id)
