"""
Pinboard API: Test Configuration (conftest.py)
================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh SQLite database file (aiosqlite) with the
       full schema; the API client routes the app's session dependency to
       that database.

Fixture Hierarchy:
    engine            → per-test SQLite database, schema created
    ├── session_factory
    │   ├── db            service-level tests (flush only, never committed)
    │   └── client        HTTPX AsyncClient; each request commits on success
    ├── make_user / make_pin    ORM factories bound to `db`
    └── sample_png_bytes / sample_mp4_bytes
"""

import base64
import os
import tempfile
import uuid
from typing import AsyncGenerator, List, Optional

# Settings are read at import time: configure BEFORE any pinboard import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["AUTO_TAG_ENABLED"] = "false"
os.environ["RETRY_MAX_ATTEMPTS"] = "1"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="pinboard_test_")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from pinboard.database import Base, get_db_session
from pinboard.models import Pin, User
from pinboard.security import create_access_token, hash_password


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

def _enable_savepoints(engine) -> None:
    """
    pysqlite defers BEGIN until the first DML statement, which breaks
    SAVEPOINT. Take over transaction control so begin_nested() works.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'pinboard.db'}",
        poolclass=NullPool,
    )
    _enable_savepoints(test_engine)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


# ══════════════════════════════════════════════════════════════════════════
# Factories
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db):
    """
    Usage:
        alice = await make_user("alice")
    """

    async def _make_user(
        username: str,
        password: str = "secret123",
        email: Optional[str] = None,
        **fields,
    ) -> User:
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=hash_password(password),
            **fields,
        )
        db.add(user)
        await db.flush()
        return user

    return _make_user


@pytest.fixture
def make_pin(db):
    """Pins created without touching storage (media_path is a placeholder)."""

    async def _make_pin(
        owner: User,
        title: str = "Sunset",
        description: str = "",
        category: str = "general",
        tags: Optional[List[str]] = None,
        media_type: str = "image",
        **fields,
    ) -> Pin:
        pin_id = uuid.uuid4()
        pin = Pin(
            id=pin_id,
            title=title,
            description=description,
            category=category,
            tags=tags or [],
            media_type=media_type,
            media_url=f"/media/test/{pin_id}.jpg",
            media_path=f"test/{pin_id}.jpg",
            user_id=owner.id,
            user=owner,
            **fields,
        )
        db.add(pin)
        await db.flush()
        return pin

    return _make_pin


@pytest.fixture
def auth_headers():
    def _headers(user_id: uuid.UUID) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers


# ══════════════════════════════════════════════════════════════════════════
# Media samples
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def sample_png_bytes() -> bytes:
    """A complete 1x1 transparent PNG."""
    return base64.b64decode(
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
    )


@pytest.fixture
def sample_mp4_bytes() -> bytes:
    """An ISO base media header (ftyp box) that libmagic reports as video/mp4."""
    return (
        b"\x00\x00\x00\x20ftypisom\x00\x00\x02\x00isomiso2avc1mp41"
        + b"\x00\x00\x00\x08free"
        + b"\x00" * 64
    )


# ══════════════════════════════════════════════════════════════════════════
# API client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient bound to the app; requests use the per-test database.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
    """
    from pinboard.main import app

    async def _test_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _test_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()
