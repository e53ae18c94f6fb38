"""
Blog API — Test Configuration (conftest.py)
=============================================

What:  Shared pytest fixtures for the whole suite.
How:   Environment overrides are applied before any `app` import so the
       settings singleton is built with test values: in-memory SQLite,
       no retry waits, no Cloudinary credentials.

Fixture Hierarchy (all function-scoped):
    ├── database:          fresh in-memory SQLite with the schema created
    │   ├── db_session:    AsyncSession on that database
    │   └── test_client:   HTTPX AsyncClient on a fresh app using it
    ├── mock_db_session:   AsyncMock session for pure unit tests
    ├── make_image:        factory for real image bytes (Pillow)
    └── create_blog_row:   inserts a committed post row directly
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MAX_ATTEMPTS"] = "2"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "0"
os.environ["CB_FAILURE_THRESHOLD"] = "3"
os.environ["CB_RECOVERY_TIMEOUT"] = "60"
os.environ["COMMENT_WRITE_ATTEMPTS"] = "3"
for _key in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET"):
    os.environ.pop(_key, None)

import io  # noqa: E402
import uuid  # noqa: E402
from datetime import date  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from PIL import Image  # noqa: E402

from app.database import Database  # noqa: E402
from app.models.blog import Blog  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    """A private in-memory database per test (StaticPool keeps it alive)."""
    db = Database("sqlite+aiosqlite://")
    db.connect()
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def test_client(database):
    """
    HTTPX client for endpoint tests.

    A new app per test gives every test its own rate limiter state. The
    lifespan does not run under ASGITransport, so the database is attached
    to app.state here.
    """
    from app.main import create_app

    app = create_app()
    app.state.database = database
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for AsyncSession.

    Usage:
        mock_db_session.execute = AsyncMock(side_effect=[select_result, update_result])
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Data Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_image():
    """
    Returns a factory producing encoded image bytes.

        make_image()                            # 64x48 PNG
        make_image(fmt="JPEG", size=(2400, 800))
        make_image(mode="RGBA")
    """

    def _make(fmt: str = "PNG", size=(64, 48), mode: str = "RGB", color=(200, 40, 40)) -> bytes:
        if mode == "RGBA" and len(color) == 3:
            color = (*color, 128)
        img = Image.new(mode, size, color)
        buffer = io.BytesIO()
        img.save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture
def create_blog_row(database):
    """Inserts and commits a post; returns its id. Keyword args override columns."""

    async def _create(**overrides) -> str:
        values = {
            "id": str(uuid.uuid4()),
            "title": "Getting started with async Python",
            "published_date": date(2024, 5, 1),
            "category": "Tech",
            "authors": ["Ada Lovelace"],
            "body": "Body text " * 10,
            "comments": [],
        }
        values.update(overrides)
        async with database.session_factory() as session:
            session.add(Blog(**values))
            await session.commit()
        return values["id"]

    return _create
