"""
Upload handling for CSV imports.

This file contains logic that is independent of FastAPI's routing layer:
- Validate uploads
- Stream the upload to a temporary file with a size limit
- Guarantee the temporary file is removed afterwards
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import UploadFile

from core import settings
from core.errors import ValidationFailure

ALLOWED_EXTENSIONS = {".csv"}
ALLOWED_CONTENT_TYPES = {"text/csv", "application/csv", "application/vnd.ms-excel"}

READ_CHUNK_BYTES = 1024 * 1024  # 1 MiB

logger = logging.getLogger(__name__)


def _file_ext(filename: str) -> str:
    return Path(filename).suffix.lower()


def validate_upload(file: UploadFile) -> None:
    """
    Accept the upload if either its extension or its content type says CSV.
    """
    if not file.filename:
        raise ValidationFailure("Missing filename.")

    ext = _file_ext(file.filename)
    content_type = (file.content_type or "").split(";", 1)[0].strip().lower()
    if ext not in ALLOWED_EXTENSIONS and content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationFailure("Only CSV files are allowed")


async def _copy_upload(file: UploadFile, dest, max_bytes: int) -> int:
    written = 0
    while True:
        chunk = await file.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        written += len(chunk)
        if written > max_bytes:
            raise ValidationFailure(
                f"File too large. Max is {max_bytes} bytes.",
                status_code=413,
            )
        await asyncio.to_thread(dest.write, chunk)
    return written


@asynccontextmanager
async def stored_upload(file: UploadFile) -> AsyncIterator[Path]:
    """
    Validate `file`, spool it to UPLOAD_TMP_DIR and yield the path.

    The temporary file is deleted when the block exits, whatever the outcome.
    """
    validate_upload(file)
    max_bytes = settings.max_upload_bytes()

    fd, name = tempfile.mkstemp(prefix="upload-", suffix=".csv", dir=settings.upload_tmp_dir())
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as dest:
            size = await _copy_upload(file, dest, max_bytes)
        logger.info("upload_stored filename=%s size_bytes=%s", file.filename, size)
        yield path
    finally:
        path.unlink(missing_ok=True)
