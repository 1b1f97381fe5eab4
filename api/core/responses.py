"""
Success envelope and pagination helpers.
"""

from __future__ import annotations

import math
from typing import Any


def success(data: Any = None, **extra: Any) -> dict:
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def pagination(*, page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit),
    }
