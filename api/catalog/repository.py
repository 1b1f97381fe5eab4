"""
Catalog persistence (raw SQL).

Tables:
- sced_course_details (course_code primary key)
- course_certification_mappings (id serial, unique on course_code + certification_area_code)

List queries and their counts share one WHERE clause so `total` always
describes the full matching set, not the current page.
"""

from __future__ import annotations

from typing import Any

from core.db import Database

from .schemas import CourseRecord, MappingRecord

COURSE_COLUMNS = """
    c.course_code,
    c.course_code_description,
    c.course_description,
    c.course_subject_area,
    c.course_level,
    c.cte_indicator
"""

# $1 is the raw search term; an empty term disables the filter.
COURSE_SEARCH_PREDICATE = """
    $1::text = ''
    OR c.course_code_description ILIKE ('%' || $1 || '%')
    OR c.course_description ILIKE ('%' || $1 || '%')
    OR c.course_code ILIKE ('%' || $1 || '%')
"""

CERTIFICATION_SEARCH_PREDICATE = """
    $1::text = ''
    OR m.certification_area_description ILIKE ('%' || $1 || '%')
"""

CTE_BY_CERTIFICATION_FROM = """
    FROM course_certification_mappings m
    JOIN sced_course_details c ON c.course_code = m.course_code
    WHERE m.certification_area_description = $1
      AND c.cte_indicator = 'Yes'
"""


async def search_courses(db: Database, search: str, *, limit: int, offset: int) -> list[dict[str, Any]]:
    return await db.fetch_all(
        f"""
        SELECT {COURSE_COLUMNS}
        FROM sced_course_details c
        WHERE {COURSE_SEARCH_PREDICATE}
        LIMIT $2
        OFFSET $3
        """,
        search,
        limit,
        offset,
    )


async def count_courses_matching(db: Database, search: str) -> int:
    value = await db.fetch_val(
        f"""
        SELECT count(*)
        FROM sced_course_details c
        WHERE {COURSE_SEARCH_PREDICATE}
        """,
        search,
    )
    return int(value or 0)


async def search_certifications(db: Database, search: str, *, limit: int, offset: int) -> list[dict[str, Any]]:
    """
    Distinct (code, name) certification pairs.
    """
    return await db.fetch_all(
        f"""
        SELECT DISTINCT
          m.certification_area_code AS code,
          m.certification_area_description AS name
        FROM course_certification_mappings m
        WHERE {CERTIFICATION_SEARCH_PREDICATE}
        LIMIT $2
        OFFSET $3
        """,
        search,
        limit,
        offset,
    )


async def count_certifications_matching(db: Database, search: str) -> int:
    value = await db.fetch_val(
        f"""
        SELECT count(*)
        FROM (
          SELECT DISTINCT m.certification_area_code, m.certification_area_description
          FROM course_certification_mappings m
          WHERE {CERTIFICATION_SEARCH_PREDICATE}
        ) pairs
        """,
        search,
    )
    return int(value or 0)


async def get_course(db: Database, code: str) -> dict[str, Any] | None:
    return await db.fetch_one(
        """
        SELECT *
        FROM sced_course_details
        WHERE course_code = $1
        LIMIT 1
        """,
        code,
    )


async def list_course_certifications(db: Database, code: str) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT certification_area_code, certification_area_description
        FROM course_certification_mappings
        WHERE course_code = $1
        ORDER BY id
        """,
        code,
    )


async def cte_courses_for_certification(
    db: Database,
    name: str,
    *,
    limit: int,
    offset: int,
) -> list[dict[str, Any]]:
    """
    CTE courses mapped to the certification whose description equals `name`.
    """
    return await db.fetch_all(
        f"""
        SELECT {COURSE_COLUMNS}
        {CTE_BY_CERTIFICATION_FROM}
        LIMIT $2
        OFFSET $3
        """,
        name,
        limit,
        offset,
    )


async def count_cte_courses_for_certification(db: Database, name: str) -> int:
    value = await db.fetch_val(
        f"""
        SELECT count(*)
        {CTE_BY_CERTIFICATION_FROM}
        """,
        name,
    )
    return int(value or 0)


async def insert_course_if_absent(db: Database, course: CourseRecord) -> bool:
    """
    Insert a course unless its code already exists. Returns True on insert.
    """
    row = await db.fetch_one(
        """
        INSERT INTO sced_course_details (
          course_code,
          course_code_description,
          course_description,
          course_subject_area,
          course_level,
          cte_indicator
        )
        VALUES ($1, $2, $3, $4, $5, $6)
        ON CONFLICT (course_code) DO NOTHING
        RETURNING course_code
        """,
        course.course_code,
        course.course_code_description,
        course.course_description,
        course.course_subject_area,
        course.course_level,
        course.cte_indicator,
    )
    return row is not None


async def insert_mapping_if_absent(db: Database, mapping: MappingRecord) -> bool:
    """
    Insert a mapping unless (course_code, certification_area_code) exists.

    Uses NOT EXISTS rather than ON CONFLICT: the unique constraint is applied
    best-effort and may be missing.
    """
    row = await db.fetch_one(
        """
        INSERT INTO course_certification_mappings (
          course_code,
          certification_area_code,
          certification_area_description
        )
        SELECT $1::varchar, $2::varchar, $3::varchar
        WHERE NOT EXISTS (
          SELECT 1
          FROM course_certification_mappings
          WHERE course_code = $1
            AND certification_area_code = $2
        )
        RETURNING id
        """,
        mapping.course_code,
        mapping.certification_area_code,
        mapping.certification_area_description,
    )
    return row is not None


async def count_courses(db: Database) -> int:
    value = await db.fetch_val("SELECT count(*) FROM sced_course_details")
    return int(value or 0)


async def catalog_stats(db: Database) -> dict[str, int]:
    row = await db.fetch_one(
        """
        SELECT
          (SELECT count(*) FROM sced_course_details) AS total_courses,
          (SELECT count(DISTINCT certification_area_description)
             FROM course_certification_mappings) AS total_certifications,
          (SELECT count(*) FROM course_certification_mappings) AS total_mappings
        """
    )
    row = row or {}
    return {
        "totalCourses": int(row.get("total_courses") or 0),
        "totalCertifications": int(row.get("total_certifications") or 0),
        "totalMappings": int(row.get("total_mappings") or 0),
    }
