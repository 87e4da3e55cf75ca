"""
Archinnection Backend: Test Configuration (conftest.py)
=========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own SQLite database file (aiosqlite) with every
       table created from the ORM metadata, so no PostgreSQL is needed.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── engine:             Async engine on a per-test SQLite file
    ├── session_factory:    async_sessionmaker bound to that engine
    ├── db_session:         One session for calling services directly
    ├── client:             HTTPX AsyncClient wired to a fresh app
    ├── make_user:          Creates an account + profile (committed)
    ├── session_cookie:     Opens a session and returns the Cookie header
    ├── mock_db_session:    AsyncMock session for failure-path tests
    └── sample_image_bytes: Minimal PNG for upload tests

Route tests and service tests do not mix: a route test seeds data
through make_user (which commits), a service test works inside
db_session and never talks HTTP.
"""

import os
import tempfile

# Override settings for testing BEFORE any archinnection imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="archinnection_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["BCRYPT_ROUNDS"] = "4"

from typing import AsyncGenerator, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import archinnection.models  # noqa: F401  (registers every table)
from archinnection.config import settings
from archinnection.database import Base, get_db_session
from archinnection.main import create_app
from archinnection.services.auth_service import auth_service


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    """
    Async engine on a fresh SQLite file.

    pysqlite's implicit transactions break SAVEPOINT (begin_nested), so
    the driver is put in autocommit mode and BEGIN is emitted explicitly.
    """
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(test_engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    A single session for service-level tests.

    Services only flush; the transaction is rolled back at teardown.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        mock_db_session.flush.side_effect = SQLAlchemyError("boom")
        with pytest.raises(DatabaseError): ...
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
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to a fresh app bound to the test database.

    Redirects are not followed so tests can assert on them.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
    """
    app = create_app(session_factory=session_factory)

    async def _override_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client


# ══════════════════════════════════════════════════════════════════════════
# Accounts
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(session_factory):
    """
    Factory fixture: creates a committed account and returns its User.

    Usage:
        alice = await make_user("alice@example.com", "Alice Architect")
    """

    async def _make_user(
        email: str = "ada@example.com",
        full_name: str = "Ada Lovelace",
        password: str = "correct-horse",
    ):
        async with session_factory() as session:
            user = await auth_service.signup(session, email, password, full_name)
            await session.commit()
            return user

    return _make_user


@pytest.fixture
def session_cookie(session_factory):
    """
    Factory fixture: signs a user in and returns request headers that
    carry the session cookie.

    Usage:
        headers = await session_cookie("ada@example.com")
        await client.get("/dashboard", headers=headers)
    """

    async def _session_cookie(
        email: str = "ada@example.com", password: str = "correct-horse"
    ) -> Dict[str, str]:
        async with session_factory() as session:
            _, auth_session = await auth_service.login(session, email, password)
            await session.commit()
            return {"Cookie": f"{settings.session_cookie_name}={auth_session.token}"}

    return _session_cookie


# ══════════════════════════════════════════════════════════════════════════
# Files
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    """A fresh storage root for StorageService instances under test."""
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """
    Minimal valid PNG: signature + IHDR chunk for a 1x1 image.

    Enough for libmagic (and the filename fallback) to report image/png.
    """
    return (
        b"\x89PNG\r\n\x1a\n"
        b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
        b"\x1f\x15\xc4\x89"
        b"\x00\x00\x00\rIDATx\x9cc\x00\x01\x00\x00\x05\x00\x01\r\n-\xb4"
        b"\x00\x00\x00\x00IEND\xaeB`\x82"
    )


@pytest.fixture
def sample_pdf_bytes():
    """Minimal PDF header and trailer; libmagic reports application/pdf."""
    return b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"
