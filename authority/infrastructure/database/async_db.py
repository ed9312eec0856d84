from __future__ import annotations

"""
Asynchronous Database Utilities Module

This module builds the SQLAlchemy asyncio engine and session factory used by
the unit of work, creates tables on startup, and checks connectivity.

**Security Note**: Ensure that the database connection URL (DATABASE_URL) is
configured for SSL/TLS when connecting over untrusted networks. asyncpg takes
SSL options in the URL, not in `connect_args`. Never log the connection URL.

Key Components:
    - create_engine_from_settings: Builds the async engine from settings.
    - create_session_factory: A factory for asynchronous database sessions.
    - create_db_and_tables: Creates the schema with the async engine.
    - check_database_health: Verifies connectivity with retry logic.
"""

import urllib.parse as urlparse

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from structlog import get_logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from authority.core.config.settings import Settings

logger = get_logger(__name__)


def _build_async_url(database_url: str) -> str:
    """
    Normalize the database URL for the asyncpg driver.

    Synchronous driver names are swapped for asyncpg and `sslmode` is dropped
    from the query string, since asyncpg handles SSL differently.
    """
    if not database_url.startswith("postgresql"):
        return database_url
    async_url = database_url.replace("postgresql+psycopg2", "postgresql+asyncpg")
    if async_url.startswith("postgresql://"):
        async_url = "postgresql+asyncpg://" + async_url[len("postgresql://"):]
    parsed = urlparse.urlparse(async_url)
    query = dict(urlparse.parse_qsl(parsed.query))
    query.pop("sslmode", None)
    return urlparse.urlunparse(parsed._replace(query=urlparse.urlencode(query)))


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create the async engine; pool sizing only applies to PostgreSQL."""
    url = make_url(_build_async_url(settings.DATABASE_URL))
    kwargs = {"echo": settings.DATABASE_ECHO, "pool_pre_ping": True}
    if url.get_backend_name() == "postgresql":
        kwargs.update(
            pool_size=settings.POSTGRES_POOL_SIZE,
            max_overflow=settings.POSTGRES_MAX_OVERFLOW,
            pool_timeout=settings.POSTGRES_POOL_TIMEOUT,
        )
    return create_async_engine(url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessions keep loaded attributes after commit so results can be returned."""
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def create_db_and_tables(engine: AsyncEngine) -> None:
    """
    Create all tables registered on the SQLModel metadata.

    Production deployments run the Alembic migrations; this keeps development
    and test databases usable without them.
    """
    # Importing the entities registers their tables on the metadata.
    import authority.domain.entities  # noqa: F401

    logger.info("Creating database tables")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables created")


async def check_database_health(engine: AsyncEngine, attempts: int = 3) -> bool:
    """
    Check database connectivity, retrying transient connection failures.

    Returns:
        bool: True if the database answered, False after the last failed attempt.
    """

    @retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(OperationalError),
        reraise=True,
    )
    async def _ping() -> None:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    try:
        await _ping()
        logger.info("database_health_check_passed")
        return True
    except OperationalError as e:
        logger.error("database_health_check_failed", error=str(e))
        return False
