import asyncio
import threading

import pytest

from core.errors import ValidationFailure
from fakes import COURSE_CSV, MAPPING_CSV
from ingestion import importer
from ingestion.importer import ImportType, RowStatus


def _write(tmp_path, text, name="rows.csv"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_read_rows_keeps_order_and_trims(tmp_path):
    path = _write(tmp_path, "﻿ Course Code , Course Code Description\n 10001 , Algebra I \n10002,Geometry\n")
    rows = importer.read_rows(path)
    assert rows == [
        {"Course Code": "10001", "Course Code Description": "Algebra I"},
        {"Course Code": "10002", "Course Code Description": "Geometry"},
    ]


def test_detects_type_from_first_row_only():
    assert importer.detect_import_type({"Certification Area Code": "1"}) is ImportType.MAPPINGS
    assert importer.detect_import_type({"certification_area_code": "1"}) is ImportType.MAPPINGS
    assert importer.detect_import_type({"Course Code": "1"}) is ImportType.COURSES


def test_resolve_field_prefers_readable_header_then_snake_case():
    assert importer.resolve_field({"Course Code": "A", "course_code": "B"}, "course_code") == "A"
    assert importer.resolve_field({"Course Code": "", "course_code": "B"}, "course_code") == "B"
    assert importer.resolve_field({}, "course_code") == ""


def test_import_courses(catalog, fake_db, tmp_path):
    summary = asyncio.run(importer.import_csv(fake_db, _write(tmp_path, COURSE_CSV)))

    assert summary.import_type is ImportType.COURSES
    assert summary.inserted == 2
    assert catalog.courses["10002"]["cte_indicator"] == "Yes"
    assert catalog.courses["10001"]["course_subject_area"] == "Mathematics"


def test_import_mappings_with_snake_case_headers(catalog, fake_db, tmp_path):
    summary = asyncio.run(importer.import_csv(fake_db, _write(tmp_path, MAPPING_CSV)))

    assert summary.import_type is ImportType.MAPPINGS
    assert summary.inserted == 2
    assert [m["certification_area_code"] for m in catalog.mappings] == ["7010", "9020"]


def test_reimporting_same_file_inserts_nothing(catalog, fake_db, tmp_path):
    path = _write(tmp_path, MAPPING_CSV)
    first = asyncio.run(importer.import_csv(fake_db, path))
    second = asyncio.run(importer.import_csv(fake_db, path))

    assert first.inserted == 2
    assert second.inserted == 0
    assert [o.reason for o in second.outcomes] == ["already exists", "already exists"]
    assert len(catalog.mappings) == 2


def test_rows_missing_required_fields_are_skipped(catalog, fake_db, tmp_path):
    text = (
        "Course Code,Course Code Description\n"
        ",No Code\n"
        "10003,Chemistry\n"
        "10004,\n"
    )
    summary = asyncio.run(importer.import_csv(fake_db, _write(tmp_path, text)))

    assert summary.inserted == 1
    assert list(catalog.courses) == ["10003"]
    assert [(o.line, o.status, o.reason) for o in summary.outcomes] == [
        (2, RowStatus.SKIPPED, "missing course_code"),
        (3, RowStatus.INSERTED, ""),
        (4, RowStatus.SKIPPED, "missing course_code_description"),
    ]


def test_later_rows_use_first_row_type(catalog, fake_db):
    rows = [
        {"Course Code": "10001", "Certification Area Code": "7010", "Certification Area Description": "Math"},
        {"Course Code": "10005", "Course Code Description": "Physics"},
    ]
    summary = asyncio.run(importer.import_rows(fake_db, rows))

    assert summary.import_type is ImportType.MAPPINGS
    assert summary.outcomes[1].status is RowStatus.SKIPPED
    assert catalog.courses == {}


def test_failed_row_does_not_abort_import(catalog, fake_db, tmp_path):
    catalog.failing_codes.add("10001")
    summary = asyncio.run(importer.import_csv(fake_db, _write(tmp_path, COURSE_CSV)))

    assert summary.inserted == 1
    assert summary.failed == 1
    assert summary.outcomes[0].status is RowStatus.FAILED
    assert "10001" in summary.outcomes[0].reason
    assert list(catalog.courses) == ["10002"]


def test_oversized_value_fails_only_that_row(catalog, fake_db):
    rows = [
        {"course_code": "X" * 30, "course_code_description": "Too long"},
        {"course_code": "10006", "course_code_description": "Art I"},
    ]
    summary = asyncio.run(importer.import_rows(fake_db, rows))
    assert [o.status for o in summary.outcomes] == [RowStatus.FAILED, RowStatus.INSERTED]


def test_empty_file_is_rejected(catalog, fake_db, tmp_path):
    path = _write(tmp_path, "Course Code,Course Code Description\n")
    with pytest.raises(ValidationFailure, match="No data found in CSV file"):
        asyncio.run(importer.import_csv(fake_db, path))
    assert catalog.courses == {}


def test_csv_is_parsed_off_the_event_loop_thread(catalog, fake_db, tmp_path, monkeypatch):
    parse_read_rows = importer.read_rows
    threads = []

    def recording_read_rows(path):
        threads.append(threading.get_ident())
        return parse_read_rows(path)

    monkeypatch.setattr(importer, "read_rows", recording_read_rows)

    async def run():
        loop_thread = threading.get_ident()
        summary = await importer.import_csv(fake_db, _write(tmp_path, COURSE_CSV))
        return loop_thread, summary

    loop_thread, summary = asyncio.run(run())
    assert summary.inserted == 2
    assert threads and threads[0] != loop_thread
