from fastapi import APIRouter

from .clusters import router as clusters_router
from .groups import router as groups_router
from .health import router as health_router


def build_router() -> APIRouter:
    router = APIRouter()
    router.include_router(health_router)
    router.include_router(groups_router)
    router.include_router(clusters_router)
    return router


# Export module-level router so facegroup.main can import it
router = build_router()
