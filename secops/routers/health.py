from datetime import datetime, timezone

from fastapi import APIRouter
from tortoise import connections
from tortoise.exceptions import BaseORMException

router = APIRouter(tags=["ops"])


@router.get("/health")
async def health():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/ops/db-health")
async def db_health():
    """Simple database health check using Tortoise ORM"""
    try:
        await connections.get("default").execute_query("SELECT 1")
        return {"db_ok": True}
    except (BaseORMException, ConnectionError, OSError, KeyError) as e:
        return {"db_ok": False, "error": str(e)}
