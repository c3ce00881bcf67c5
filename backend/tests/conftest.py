"""Pytest configuration and fixtures."""

import os
import tempfile
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

# Point the global engine at a throwaway directory BEFORE importing app modules
_test_tmp_dir = tempfile.mkdtemp(prefix="atlantis_test_")
os.environ["ATLANTIS_DATA_PATH"] = _test_tmp_dir

from atlantis.api.deps import get_repository
from atlantis.core.config import settings
from atlantis.db import create_database_engine, create_session_maker
from atlantis.db.base import Base
from atlantis.db.models import Diagram, DiagramContent  # noqa: F401
from atlantis.main import app
from atlantis.services.diagrams import DiagramRepository
from atlantis.storage import DatabaseStorageBackend, JsonFileStorageBackend


@pytest.fixture
async def db_engine(tmp_path):
    """Create a test database engine backed by a temporary SQLite file."""
    engine = create_database_engine(f"sqlite+aiosqlite:///{tmp_path / 'test_atlantis.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    """Session factory bound to the test engine."""
    return create_session_maker(db_engine)


@pytest.fixture
def db_backend(session_maker):
    """Relational storage backend over the test database."""
    return DatabaseStorageBackend(session_maker)


@pytest.fixture
def repository(db_backend):
    """Diagram repository over the relational backend."""
    return DiagramRepository(db_backend)


@pytest.fixture
def diagrams_file(tmp_path) -> Path:
    """Location of a flat JSON store for the test."""
    return tmp_path / "data" / "diagrams.json"


@pytest.fixture
def file_backend(diagrams_file):
    """Flat JSON file storage backend."""
    return JsonFileStorageBackend(diagrams_file)


@pytest.fixture
def file_repository(file_backend):
    """Diagram repository over the flat JSON file backend."""
    return DiagramRepository(file_backend)


@pytest.fixture
async def client(repository):
    """Create a test client with the repository dependency overridden."""
    app.dependency_overrides[get_repository] = lambda: repository

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


async def fetch_csrf_headers(client: AsyncClient) -> dict[str, str]:
    """Obtain a CSRF token (cookie lands in the client jar) and return the header."""
    response = await client.get("/api/csrf")
    assert response.status_code == 200
    return {settings.csrf_header_name: response.json()["token"]}


@pytest.fixture
async def csrf_headers(client):
    """Headers carrying a valid CSRF token for the test client."""
    return await fetch_csrf_headers(client)


def pytest_sessionfinish(session, exitstatus):
    """Clean up temp directories after test session."""
    import shutil

    if Path(_test_tmp_dir).exists():
        shutil.rmtree(_test_tmp_dir, ignore_errors=True)
