from __future__ import annotations

"""Health check endpoint."""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from structlog import get_logger

from authority.core.dependencies.auth import get_container
from authority.infrastructure.dependency_injection.container import Container

logger = get_logger(__name__)
router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    env: str
    services: Dict[str, Any]
    background_tasks: int
    timestamp: datetime


async def check_database(container: Container) -> Dict[str, Any]:
    try:
        async with container.engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        return {"status": "healthy"}
    except SQLAlchemyError as e:
        logger.error("database_health_check_failed", error=str(e))
        return {"status": "unhealthy", "error": type(e).__name__}


@router.get("", response_model=HealthResponse)
async def health_check(container: Annotated[Container, Depends(get_container)]) -> HealthResponse:
    db_health = await check_database(container)
    overall_status = "ok" if db_health["status"] == "healthy" else "degraded"
    return HealthResponse(
        status=overall_status,
        env=container.settings.APP_ENV,
        services={
            "database": db_health,
            "sweep": {"status": "running" if container.sweep.running else "stopped"},
        },
        background_tasks=container.dispatcher.pending,
        timestamp=datetime.now(timezone.utc),
    )
