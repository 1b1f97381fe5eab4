"""
SCED course and certification lookup endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from core.db import Database, get_database
from core.errors import handler_failure
from core.responses import success

from . import service

router = APIRouter(prefix="/api/v1")


@router.get("/sced/search")
async def search_courses(
    search: str = Query(default=""),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1),
    db: Database = Depends(get_database),
) -> dict:
    with handler_failure("Failed to search SCED courses"):
        result = await service.search_courses(db, search, page=page, limit=limit)
    return success(result.items, pagination=result.pagination())


@router.get("/certifications/search")
async def search_certifications(
    search: str = Query(default=""),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1),
    db: Database = Depends(get_database),
) -> dict:
    with handler_failure("Failed to search certifications"):
        result = await service.search_certifications(db, search, page=page, limit=limit)
    return success(result.items, total=result.total, page=result.page, limit=result.limit)


@router.get("/certifications/name/{name:path}/cte-courses")
async def cte_courses_for_certification(
    name: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1),
    db: Database = Depends(get_database),
) -> dict:
    """
    CTE courses for a certification, matched by its exact description.
    The name arrives URL-decoded and may contain "/" (sent as %2F).
    """
    with handler_failure("Failed to load CTE courses for certification"):
        result = await service.cte_courses_by_certification_name(db, name, page=page, limit=limit)
    return success(result.items, pagination=result.pagination())


@router.get("/sced/courses/code/{code}")
async def get_course_by_code(
    code: str,
    db: Database = Depends(get_database),
) -> dict:
    with handler_failure("Failed to load course details"):
        course = await service.get_course_by_code(db, code)
    return success(course)
