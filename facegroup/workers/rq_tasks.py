"""
Worker entry points (imported by the RQ worker).

RQ calls plain functions, so each job opens its own event loop and database
connection around the async use case.
"""

import asyncio
import logging
from typing import List

from facegroup.db import close_db, init_db
from facegroup.services.face_clustering import get_clustering_service
from facegroup.services.face_grouping import group_new_faces

log = logging.getLogger("facegroup.worker")


async def run_face_grouping(group_id: str, face_ids: List[str]) -> dict:
    report = await group_new_faces(group_id, face_ids, get_clustering_service())
    return report.model_dump()


def face_grouping(group_id: str, face_ids: List[str]) -> dict:
    async def run():
        await init_db()
        try:
            return await run_face_grouping(group_id, face_ids)
        finally:
            await close_db()

    log.info("[Face Grouping] Starting job for group %s (%s faces)", group_id, len(face_ids))
    return asyncio.run(run())


def start_worker():
    """Start an RQ worker on the face-processing queue (for development)."""
    import redis
    from rq import Queue, Worker
    from facegroup.config import settings

    conn = redis.from_url(settings.REDIS_URL)
    worker = Worker([Queue("face-processing", connection=conn)], connection=conn)
    log.info("Starting RQ worker...")
    worker.work()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    start_worker()
