"""
PawSpot API — Test Configuration (conftest.py)
===============================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── engine:            In-memory SQLite (aiosqlite + StaticPool), tables created
    ├── session_factory:   async_sessionmaker bound to `engine`
    ├── db_session:        One AsyncSession for service-level tests
    ├── upload_dir:        Temporary photo directory
    ├── photos:            PhotoService writing into `upload_dir`
    ├── client:            HTTPX AsyncClient against the app, DB and photo
    │                      service dependencies overridden
    ├── location_payload:  Valid create body (camelCase)
    ├── sample_png_bytes
    └── sample_image_bytes (JPEG)
"""

import base64
import os
import tempfile

# Settings are read at import time; point them away from any real database
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["FILE_UPLOAD_PATH"] = tempfile.mkdtemp(prefix="pawspot_test_")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pawspot.database import Base, get_db_session
from pawspot.models.location import Location  # noqa: F401
from pawspot.routes.locations import get_photo_service
from pawspot.schemas.location import LocationPayload
from pawspot.services.location_service import LocationService
from pawspot.services.photo_service import PhotoService

TEST_MAX_UPLOAD = 1024


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    """
    Fresh in-memory database per test.

    StaticPool keeps one connection, so every session sees the same
    in-memory database.
    """
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Services
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def service():
    return LocationService(model=Location)


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def photos(service, upload_dir):
    return PhotoService(records=service, upload_path=str(upload_dir), max_size=TEST_MAX_UPLOAD)


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def client(session_factory, photos):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    Usage:
        async def test_list(client):
            response = await client.get("/api/v1/locations")
            assert response.status_code == 200
    """
    from pawspot.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_photo_service] = lambda: photos
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    finally:
        app.dependency_overrides.clear()


# ══════════════════════════════════════════════════════════════════════════
# Sample data
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def location_payload():
    """A valid create body, as a client would send it."""
    return {
        "title": "Happy Tails Daycare",
        "description": "Indoor and outdoor play areas for dogs and cats.",
        "address": "233 Bay State Rd Boston MA 02215",
        "location": {
            "formattedAddress": "233 Bay State Rd, Boston, MA 02215, US",
            "street": "233 Bay State Rd",
            "city": "Boston",
            "state": "MA",
            "zipcode": "02215",
            "country": "US",
        },
        "animalTypes": ["Dog", "Cat"],
        "services": ["Food", "Walking"],
        "averageRating": 4.5,
    }


@pytest.fixture
def make_payload(location_payload):
    """Build a LocationPayload from the sample body with overrides."""

    def _make(**overrides):
        body = dict(location_payload)
        body.update(overrides)
        return LocationPayload.model_validate(body)

    return _make


@pytest.fixture
def sample_png_bytes():
    """1x1 transparent PNG."""
    return base64.b64decode(
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
    )


@pytest.fixture
def sample_image_bytes():
    """Smallest JPEG: SOI + JFIF header + EOI."""
    return (
        b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
        b"\xff\xd9"
    )
