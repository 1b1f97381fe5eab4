import asyncio

import pytest
from fastapi.testclient import TestClient

from admin import setup
from fakes import FakeDatabase, InMemoryCatalog
from main import app


@pytest.fixture
def catalog(monkeypatch):
    store = InMemoryCatalog()
    store.install(monkeypatch)
    return store


@pytest.fixture
def fake_db(catalog):
    return FakeDatabase(catalog)


@pytest.fixture
def seeded(catalog, fake_db):
    asyncio.run(setup.seed(fake_db))
    return catalog


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    path.mkdir()
    monkeypatch.setenv("UPLOAD_TMP_DIR", str(path))
    return path


@pytest.fixture
def client(catalog, fake_db):
    # No `with` block: the lifespan would try to open a real pool.
    app.state.db = fake_db
    try:
        yield TestClient(app)
    finally:
        del app.state.db
