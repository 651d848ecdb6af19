"""
NoteApp Backend - Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set before any noteapp import so the
       settings singleton, the engine and the upload directory all point at
       throwaway locations.

Fixture Hierarchy (all function-scoped):
    ├── db_engine / db_session: in-memory SQLite (aiosqlite + StaticPool)
    ├── mock_db_session: AsyncMock session for failure-path tests
    ├── disk_store / inline_store: one instance of each attachment variant
    ├── disk_service / inline_service: NoteService wired to each store
    ├── sample_file: small text attachment
    └── test_client / inline_client: HTTPX AsyncClient against the app
"""

import os
import tempfile

_TEST_ROOT = tempfile.mkdtemp(prefix="noteapp_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/test.db"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_ROOT, "uploads")
os.environ["ATTACHMENT_STORAGE"] = "disk"
os.environ["CORS_ORIGINS"] = "*"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from noteapp.database import Base, get_db_session  # noqa: E402
from noteapp.models.note import Note  # noqa: E402,F401
from noteapp.services.attachment_base import IncomingFile  # noqa: E402
from noteapp.services.file_service import DiskAttachmentStore  # noqa: E402
from noteapp.services.inline_store import InlineAttachmentStore  # noqa: E402
from noteapp.services.note_service import NoteService, get_note_service  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    Fresh in-memory database per test.

    StaticPool keeps the single SQLite connection alive across sessions,
    otherwise every new connection would see an empty database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Mock async database session.

    Usage:
        mock_db_session.flush.side_effect = SQLAlchemyError("boom")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Attachment stores and services
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def disk_store(upload_dir):
    return DiskAttachmentStore(upload_dir=str(upload_dir))


@pytest.fixture
def inline_store():
    return InlineAttachmentStore()


@pytest.fixture
def disk_service(disk_store):
    return NoteService(store=disk_store)


@pytest.fixture
def inline_service(inline_store):
    return NoteService(store=inline_store)


@pytest.fixture
def sample_file():
    return IncomingFile(filename="hello.txt", content=b"hello world", content_type="text/plain")


@pytest.fixture
def sample_png_bytes():
    """PNG signature plus an IHDR chunk header; enough to look like a PNG."""
    return b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"


# ══════════════════════════════════════════════════════════════════════════
# HTTP clients
# ══════════════════════════════════════════════════════════════════════════

def _override_db(session_factory):
    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return override_get_db_session


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the app with the disk storage variant.

    Attachments land in the UPLOAD_DIR set above, which is also the
    directory mounted under /uploads.
    """
    from noteapp.main import app

    app.dependency_overrides[get_db_session] = _override_db(session_factory)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def inline_client(session_factory, inline_service):
    """Same app, but NoteService stores attachment bytes in the database."""
    from noteapp.main import app

    app.dependency_overrides[get_db_session] = _override_db(session_factory)
    app.dependency_overrides[get_note_service] = lambda: inline_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
