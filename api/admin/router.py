"""
Admin endpoints: schema setup and catalog stats.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from catalog import service as catalog_service
from core.db import Database, get_database
from core.errors import handler_failure
from core.responses import success

from . import setup

router = APIRouter(prefix="/api/v1")


@router.get("/admin/stats")
async def get_stats(db: Database = Depends(get_database)) -> dict:
    with handler_failure("Failed to load stats"):
        stats = await catalog_service.stats(db)
    return success(stats)


@router.post("/setup")
async def setup_database(db: Database = Depends(get_database)) -> dict:
    """
    Create tables if missing and seed sample rows into an empty catalog.
    Safe to call repeatedly.
    """
    with handler_failure("Failed to setup database"):
        await setup.setup_database(db)
    return success(message="Database setup completed successfully")
