"""
FastAPI router for the admin CSV upload.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile

from core.db import Database, get_database
from core.errors import handler_failure
from core.responses import success

from . import importer
from . import service

router = APIRouter(prefix="/api/v1/admin")

logger = logging.getLogger(__name__)


@router.post("/upload-csv")
async def upload_csv(
    file: UploadFile = File(...),
    declared_type: str | None = Form(default=None, alias="type"),
    db: Database = Depends(get_database),
) -> dict:
    """
    Bulk-import course details or certification mappings from a CSV file.

    The table is detected from the file's headers; the `type` form field is
    only logged.
    """
    logger.info("csv_upload_received filename=%s declared_type=%s", file.filename, declared_type)
    with handler_failure("Failed to import CSV"):
        async with service.stored_upload(file) as path:
            summary = await importer.import_csv(db, path)

    return success(
        {
            "imported": summary.inserted,
            "skipped": summary.skipped,
            "failed": summary.failed,
            "type": summary.import_type.value,
        },
        message=f"Successfully imported {summary.inserted} records",
    )
