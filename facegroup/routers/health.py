from datetime import datetime

from fastapi import APIRouter
from tortoise import connections

router = APIRouter(tags=["ops"])


@router.get("/health")
async def health():
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@router.get("/ops/db-health")
async def db_health():
    """Simple database health check using Tortoise ORM"""
    try:
        await connections.get("default").execute_query("SELECT 1")
        return {"db_ok": True}
    except Exception as e:
        return {"db_ok": False, "error": str(e)}
