"""Application factory for creating and configuring the FastAPI application.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from authority.adapters.api.v1 import api_router
from authority.adapters.api.well_known import router as well_known_router
from authority.core.config.settings import Settings
from authority.core.handlers import register_exception_handlers
from authority.core.lifecycle import create_lifespan_manager
from authority.infrastructure.dependency_injection.container import Container


def create_application(
    settings: Optional[Settings] = None, container: Optional[Container] = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to build from. Defaults to the process settings.
        container: A prebuilt container, used by tests. It is attached to
            the application state immediately, so requests work even when
            the ASGI lifespan is not run.

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    if settings is None:
        from authority.core.config.settings import settings as process_settings

        settings = process_settings

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Identity and session authority.",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
        lifespan=create_lifespan_manager(settings, container),
        default_response_class=JSONResponse,
    )
    if container is not None:
        app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api/v1")
    app.include_router(well_known_router)

    return app
