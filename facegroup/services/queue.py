import logging
import uuid
from typing import List, Optional

import redis
from fastapi import BackgroundTasks
from rq import Queue

from facegroup.config import settings
from facegroup.workers.rq_tasks import face_grouping, run_face_grouping

log = logging.getLogger("facegroup.jobs")

# JOBS_BACKEND=rq | inline
JOBS_BACKEND = settings.JOBS_BACKEND.lower()

_queue: Optional[Queue] = None


def _rq_queue() -> Queue:
    global _queue
    if _queue is None:
        _queue = Queue("face-processing", connection=redis.from_url(settings.REDIS_URL))
        log.info("Queue backend: RQ")
    return _queue


def enqueue_face_grouping(
    group_id: str,
    face_ids: List[str],
    background: Optional[BackgroundTasks] = None,
) -> str:
    """Queue grouping of an upload batch and return the job id.

    With the inline backend the job runs as a FastAPI background task of the
    current request.
    """
    if JOBS_BACKEND == "rq":
        job = _rq_queue().enqueue(face_grouping, group_id, face_ids)
        return job.get_id()
    job_id = f"inline-{uuid.uuid4().hex[:8]}"
    log.info("[INLINE] face_grouping(%s, %s faces) job=%s", group_id, len(face_ids), job_id)
    if background is not None:
        background.add_task(run_face_grouping, group_id, face_ids)
    return job_id
