# This project was developed with assistance from AI tools.
"""Liveness and dependency health."""

from fastapi import APIRouter
from intake_db import get_db_service

router = APIRouter()


@router.get("/")
async def health() -> dict:
    """Report process liveness and database reachability."""
    db_ok = await get_db_service().health_check()
    return {"status": "ok" if db_ok else "degraded", "database": db_ok}
