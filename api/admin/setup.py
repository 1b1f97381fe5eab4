"""
Idempotent schema bootstrap and seed data.

The migration under `db/migrations/` is the canonical schema; this path
exists so a fresh database can be prepared through the API.
"""

from __future__ import annotations

import logging

from catalog import repository
from catalog.schemas import CourseRecord, MappingRecord
from core.db import Database
from core.errors import StorageUnavailable

logger = logging.getLogger(__name__)

CREATE_COURSES_TABLE = """
CREATE TABLE IF NOT EXISTS sced_course_details (
  course_code VARCHAR(20) PRIMARY KEY,
  course_code_description VARCHAR(500),
  course_description TEXT,
  course_subject_area VARCHAR(200),
  course_level VARCHAR(50),
  cte_indicator VARCHAR(10)
)
"""

CREATE_MAPPINGS_TABLE = """
CREATE TABLE IF NOT EXISTS course_certification_mappings (
  id SERIAL PRIMARY KEY,
  course_code VARCHAR(20),
  certification_area_code VARCHAR(20),
  certification_area_description VARCHAR(500)
)
"""

ADD_MAPPING_UNIQUE_CONSTRAINT = """
ALTER TABLE course_certification_mappings
ADD CONSTRAINT course_certification_mappings_course_cert_key
UNIQUE (course_code, certification_area_code)
"""

SEED_COURSES = [
    CourseRecord(
        course_code="03001",
        course_code_description="Biology",
        course_description="This course provides students with a comprehensive study of living organisms and life processes.",
        course_subject_area="Science",
        course_level="High School",
        cte_indicator="No",
    ),
    CourseRecord(
        course_code="20114",
        course_code_description="Introduction to Agriculture",
        course_description="This course introduces students to the world of agriculture and its career opportunities.",
        course_subject_area="Agriculture, Food & Natural Resources",
        course_level="High School",
        cte_indicator="Yes",
    ),
    CourseRecord(
        course_code="21101",
        course_code_description="Automotive Technology I",
        course_description="This course introduces students to automotive systems and basic repair procedures.",
        course_subject_area="Transportation, Distribution & Logistics",
        course_level="High School",
        cte_indicator="Yes",
    ),
]

SEED_MAPPINGS = [
    MappingRecord(course_code="03001", certification_area_code="5010", certification_area_description="Biology (Grades 5-9)"),
    MappingRecord(course_code="03001", certification_area_code="5020", certification_area_description="Biology (Grades 7-12)"),
    MappingRecord(course_code="20114", certification_area_code="8010", certification_area_description="Agriculture (Grades 5-9)"),
    MappingRecord(
        course_code="21101",
        certification_area_code="9010",
        certification_area_description="Technology Education (Grades 5-9)",
    ),
]


async def _add_unique_constraint(db: Database) -> None:
    # Runs in its own transaction (a savepoint when nested).
    try:
        async with db.transaction() as tx:
            await tx.execute(ADD_MAPPING_UNIQUE_CONSTRAINT)
    except StorageUnavailable as exc:
        # Usually "already exists"; existing duplicate rows also land here.
        logger.info("mapping_unique_constraint_skipped reason=%s", exc.message)


async def seed(db: Database) -> int:
    """
    Insert the sample rows. Returns how many rows were written.
    """
    written = 0
    for course in SEED_COURSES:
        written += await repository.insert_course_if_absent(db, course)
    for mapping in SEED_MAPPINGS:
        written += await repository.insert_mapping_if_absent(db, mapping)
    return written


async def setup_database(db: Database) -> None:
    await db.execute(CREATE_COURSES_TABLE)
    await db.execute(CREATE_MAPPINGS_TABLE)
    await _add_unique_constraint(db)

    # Seed rows commit together or not at all.
    async with db.transaction() as tx:
        if await repository.count_courses(tx) == 0:
            written = await seed(tx)
            logger.info("seed_complete rows=%s", written)
