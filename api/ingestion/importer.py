"""
CSV bulk import into the catalog tables.

A file holds either course details or certification mappings. Which one is
decided once, from the first row's headers. Each row then resolves its fields
through `FIELD_ALIASES` (spreadsheet-style header first, snake_case second)
and is inserted only if an equivalent row is not already stored.

A failing row never aborts the import; every row ends as one `RowOutcome`.
"""

from __future__ import annotations

import asyncio
import csv
import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from pydantic import ValidationError

from catalog import repository
from catalog.schemas import CourseRecord, MappingRecord
from core.db import Database
from core.errors import StorageUnavailable, ValidationFailure

logger = logging.getLogger(__name__)


class ImportType(str, enum.Enum):
    COURSES = "course_details"
    MAPPINGS = "certification_mappings"


FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "course_code": ("Course Code", "course_code"),
    "course_code_description": ("Course Code Description", "course_code_description"),
    "course_description": ("Course Description", "course_description"),
    "course_subject_area": ("Course Subject Area", "course_subject_area"),
    "course_level": ("Course Level", "course_level"),
    "cte_indicator": ("CTE Indicator", "cte_indicator"),
    "certification_area_code": ("Certification Area Code", "certification_area_code"),
    "certification_area_description": ("Certification Area Description", "certification_area_description"),
}

REQUIRED_FIELDS: dict[ImportType, tuple[str, ...]] = {
    ImportType.COURSES: ("course_code", "course_code_description"),
    ImportType.MAPPINGS: ("course_code", "certification_area_code", "certification_area_description"),
}


class RowStatus(str, enum.Enum):
    INSERTED = "inserted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class RowOutcome:
    line: int
    status: RowStatus
    reason: str = ""


@dataclass
class ImportSummary:
    import_type: ImportType
    outcomes: list[RowOutcome] = field(default_factory=list)

    def _count(self, status: RowStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)

    @property
    def inserted(self) -> int:
        return self._count(RowStatus.INSERTED)

    @property
    def skipped(self) -> int:
        return self._count(RowStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(RowStatus.FAILED)


def read_rows(path: Path) -> list[dict[str, str]]:
    """
    Parse a CSV file into header -> value mappings, in file order.
    """
    # utf-8-sig drops the BOM spreadsheet exports tend to prepend.
    rows = []
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        try:
            for raw in csv.DictReader(f):
                rows.append(
                    {
                        key.strip(): value.strip()
                        for key, value in raw.items()
                        if key is not None and isinstance(value, str)
                    }
                )
        except (UnicodeDecodeError, csv.Error) as exc:
            raise ValidationFailure("Could not parse CSV file") from exc
    return rows


def detect_import_type(first_row: Mapping[str, str]) -> ImportType:
    if any(alias in first_row for alias in FIELD_ALIASES["certification_area_code"]):
        return ImportType.MAPPINGS
    return ImportType.COURSES


def resolve_field(row: Mapping[str, str], name: str) -> str:
    for alias in FIELD_ALIASES[name]:
        value = row.get(alias)
        if value:
            return value
    return ""


def _missing_fields(values: Mapping[str, str], import_type: ImportType) -> list[str]:
    return [name for name in REQUIRED_FIELDS[import_type] if not values.get(name)]


def _build_record(values: dict[str, str], import_type: ImportType) -> CourseRecord | MappingRecord:
    if import_type is ImportType.MAPPINGS:
        return MappingRecord(
            course_code=values["course_code"],
            certification_area_code=values["certification_area_code"],
            certification_area_description=values["certification_area_description"],
        )
    return CourseRecord(
        course_code=values["course_code"],
        course_code_description=values["course_code_description"],
        course_description=values["course_description"],
        course_subject_area=values["course_subject_area"],
        course_level=values["course_level"],
        cte_indicator=values["cte_indicator"] or "No",
    )


async def _insert(db: Database, record: CourseRecord | MappingRecord) -> bool:
    if isinstance(record, MappingRecord):
        return await repository.insert_mapping_if_absent(db, record)
    return await repository.insert_course_if_absent(db, record)


async def import_row(db: Database, row: Mapping[str, str], import_type: ImportType, *, line: int) -> RowOutcome:
    values = {name: resolve_field(row, name) for name in FIELD_ALIASES}

    missing = _missing_fields(values, import_type)
    if missing:
        return RowOutcome(line, RowStatus.SKIPPED, "missing " + ", ".join(missing))

    try:
        record = _build_record(values, import_type)
        inserted = await _insert(db, record)
    except (ValidationError, StorageUnavailable) as exc:
        logger.warning("csv_row_failed line=%s type=%s error=%s", line, import_type.value, exc)
        return RowOutcome(line, RowStatus.FAILED, str(exc))

    if not inserted:
        return RowOutcome(line, RowStatus.SKIPPED, "already exists")
    return RowOutcome(line, RowStatus.INSERTED)


async def import_rows(db: Database, rows: Iterable[Mapping[str, str]]) -> ImportSummary:
    """
    Import already-parsed rows, sequentially.
    """
    rows = list(rows)
    if not rows:
        raise ValidationFailure("No data found in CSV file")

    summary = ImportSummary(import_type=detect_import_type(rows[0]))
    # Line 1 is the header.
    for line, row in enumerate(rows, start=2):
        summary.outcomes.append(await import_row(db, row, summary.import_type, line=line))

    logger.info(
        "csv_import_complete type=%s inserted=%s skipped=%s failed=%s",
        summary.import_type.value,
        summary.inserted,
        summary.skipped,
        summary.failed,
    )
    return summary


async def import_csv(db: Database, path: Path) -> ImportSummary:
    # Blocking file I/O runs in a worker thread.
    rows = await asyncio.to_thread(read_rows, path)
    return await import_rows(db, rows)
