"""
Catalog service layer: pagination and response shaping on top of the
repository queries. Independent of FastAPI routing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from core.db import Database
from core.errors import NotFound
from core.responses import page_offset, pagination

from . import repository

# Wildcard accepted by the certification search box; means "everything".
MATCH_ALL = "*"

# Placeholder: certification search does not aggregate course counts.
COURSE_COUNT_PLACEHOLDER = "0"


@dataclass(frozen=True)
class Page:
    items: list[dict[str, Any]]
    page: int
    limit: int
    total: int

    def pagination(self) -> dict:
        return pagination(page=self.page, limit=self.limit, total=self.total)


def _with_id(course: dict[str, Any]) -> dict[str, Any]:
    return {"id": course["course_code"], **course}


async def search_courses(db: Database, search: str, *, page: int, limit: int) -> Page:
    rows = await repository.search_courses(db, search, limit=limit, offset=page_offset(page, limit))
    total = await repository.count_courses_matching(db, search)
    return Page(items=[_with_id(r) for r in rows], page=page, limit=limit, total=total)


async def search_certifications(db: Database, search: str, *, page: int, limit: int) -> Page:
    term = "" if search == MATCH_ALL else search
    rows = await repository.search_certifications(db, term, limit=limit, offset=page_offset(page, limit))
    total = await repository.count_certifications_matching(db, term)
    items = [{**r, "course_count": COURSE_COUNT_PLACEHOLDER} for r in rows]
    return Page(items=items, page=page, limit=limit, total=total)


async def get_course_by_code(db: Database, code: str) -> dict[str, Any]:
    course = await repository.get_course(db, code)
    if course is None:
        raise NotFound("Course not found")

    certifications = await repository.list_course_certifications(db, code)
    return {
        **_with_id(course),
        "certifications": [c["certification_area_description"] for c in certifications],
    }


async def cte_courses_by_certification_name(db: Database, name: str, *, page: int, limit: int) -> Page:
    """
    Exact match on the certification description, not its code.
    """
    rows = await repository.cte_courses_for_certification(
        db,
        name,
        limit=limit,
        offset=page_offset(page, limit),
    )
    total = await repository.count_cte_courses_for_certification(db, name)
    return Page(items=[_with_id(r) for r in rows], page=page, limit=limit, total=total)


async def stats(db: Database) -> dict[str, int]:
    return await repository.catalog_stats(db)
