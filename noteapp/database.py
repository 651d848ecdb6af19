"""
NoteApp Backend - Database Session Management
==============================================

What:  Async SQLAlchemy engine, session factory, FastAPI dependency and
       startup/shutdown helpers.
How:   One engine per process; one AsyncSession per request. The session
       dependency commits on success and rolls back on error.
Who:   Routes (via Depends), the application lifespan, Alembic.

Connection Pooling:
    pool_size=20 / max_overflow=10 for PostgreSQL. SQLite (tests, local runs)
    uses SQLAlchemy's default pool for the dialect, so sizing options are
    only passed for server databases.
"""

import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from noteapp.config import settings

logger = logging.getLogger(__name__)


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {
        # SQL echo only in DEBUG; it is very noisy otherwise
        "echo": settings.log_level == "DEBUG",
    }
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine: AsyncEngine = create_async_engine(settings.database_url, **_engine_options())

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: views are built from ORM objects after the
# dependency has committed, and lazy reloads are not allowed under asyncio.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object used by Alembic and by
    `create_tables()`.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/api/notes")
        async def list_notes(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def wait_for_database() -> None:
    """
    Block startup until the database answers `SELECT 1`.

    What:  Retries with exponential backoff and jitter (tenacity).
    When:  Called from the application lifespan before serving traffic.
    Why:   In docker-compose the API container often starts before
           PostgreSQL accepts connections.

    Raises:
        The last connection error once all attempts are exhausted.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(settings.db_connect_attempts),
        wait=wait_exponential_jitter(
            initial=settings.db_connect_min_wait,
            max=settings.db_connect_max_wait,
        ),
        # asyncpg and aiosqlite raise driver-specific errors; retry them all
        retry=retry_if_exception_type(Exception),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
    logger.info("Database connection established")


async def create_tables() -> None:
    """Create all tables known to `Base.metadata` (no-op for existing ones)."""
    # Registers the Note mapper with Base.metadata
    from noteapp.models import note  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured (auto_create_tables=True)")


async def dispose_engine() -> None:
    """Close all pooled connections during application shutdown."""
    await engine.dispose()
