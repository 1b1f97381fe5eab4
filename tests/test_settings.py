import pytest

from core import settings
from core.db import database_url
from core.errors import ApiError
from core.responses import page_offset, pagination


def test_max_upload_bytes_defaults_to_50_mib(monkeypatch):
    monkeypatch.delenv("MAX_UPLOAD_BYTES", raising=False)
    assert settings.max_upload_bytes() == 50 * 1024 * 1024


@pytest.mark.parametrize("raw", ["abc", "0", "-5"])
def test_max_upload_bytes_rejects_bad_values(monkeypatch, raw):
    monkeypatch.setenv("MAX_UPLOAD_BYTES", raw)
    with pytest.raises(ApiError):
        settings.max_upload_bytes()


def test_cors_origins(monkeypatch):
    monkeypatch.delenv("CORS_ORIGINS", raising=False)
    assert settings.cors_origins() == ["*"]
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:5173, https://example.org ,")
    assert settings.cors_origins() == ["http://localhost:5173", "https://example.org"]


def test_pool_sizes_stay_consistent(monkeypatch):
    monkeypatch.setenv("DB_POOL_MIN_SIZE", "4")
    monkeypatch.setenv("DB_POOL_MAX_SIZE", "2")
    assert settings.db_pool_max_size() == 4


def test_database_url_drops_sslmode(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db:5432/sced?sslmode=require&application_name=api")
    assert database_url() == "postgres://u:p@db:5432/sced?application_name=api"


def test_database_url_is_required(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(RuntimeError):
        database_url()


def test_pagination_math():
    assert page_offset(1, 20) == 0
    assert page_offset(3, 10) == 20
    assert pagination(page=2, limit=10, total=21) == {"page": 2, "limit": 10, "total": 21, "totalPages": 3}
    assert pagination(page=1, limit=10, total=0)["totalPages"] == 0
