"""
Environment-driven settings.

Every value is read at call time so tests can override it with
`monkeypatch.setenv`.
"""

from __future__ import annotations

import os
import tempfile

from .errors import ApiError

DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024  # 50 MiB


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def app_env() -> str:
    return os.environ.get("APP_ENV", "development").strip() or "development"


def app_version() -> str:
    return "1.0.0"


def log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"


def cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", "").strip()
    if not raw:
        return ["*"]
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def db_pool_min_size() -> int:
    return max(_env_int("DB_POOL_MIN_SIZE", 1), 1)


def db_pool_max_size() -> int:
    return max(_env_int("DB_POOL_MAX_SIZE", 5), db_pool_min_size())


def db_command_timeout() -> int:
    return _env_int("DB_COMMAND_TIMEOUT", 30)


def upload_tmp_dir() -> str:
    return os.environ.get("UPLOAD_TMP_DIR", "").strip() or tempfile.gettempdir()


def max_upload_bytes() -> int:
    """
    Read MAX_UPLOAD_BYTES from env, falling back to 50 MiB.
    """
    raw = os.environ.get("MAX_UPLOAD_BYTES", "").strip()
    if not raw:
        return DEFAULT_MAX_UPLOAD_BYTES

    try:
        value = int(raw)
    except ValueError:
        raise ApiError("Invalid MAX_UPLOAD_BYTES. It must be an integer.")

    if value <= 0:
        raise ApiError("Invalid MAX_UPLOAD_BYTES. It must be > 0.")

    return value
