"""Application lifecycle management.

Startup checks the database, creates missing tables, builds the container
and starts the expired credential sweep. Shutdown stops the sweep, drains
background work and releases every connection.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from structlog import get_logger

from authority.core.config.settings import Settings
from authority.infrastructure.database.async_db import (
    check_database_health,
    create_db_and_tables,
    create_engine_from_settings,
)
from authority.infrastructure.dependency_injection.container import Container, build_container

logger = get_logger(__name__)


def create_lifespan_manager(settings: Settings, container: Optional[Container] = None):
    """Create the application lifespan manager.

    When a prebuilt container is given, the caller owns it: the lifespan
    starts and stops its sweep but does not close it.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Raises:
            RuntimeError: If the database is unavailable during startup.
            SigningKeyUnavailableError: If the JWT signing key is missing or invalid.
        """
        owned = container is None
        if owned:
            engine = create_engine_from_settings(settings)
            if not await check_database_health(engine, settings.DATABASE_HEALTH_CHECK_ATTEMPTS):
                logger.error("database_unavailable_on_startup")
                await engine.dispose()
                raise RuntimeError("Database unavailable")
            await create_db_and_tables(engine)
            active = build_container(settings, engine=engine)
            active.owns_engine = True
        else:
            active = container

        app.state.container = active
        active.sweep.start()
        logger.info("application_startup", env=settings.APP_ENV, version=settings.VERSION)

        try:
            yield
        finally:
            await active.sweep.stop()
            if owned:
                await active.aclose()
            logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
