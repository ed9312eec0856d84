"""Main application entry point.

Run with ``uvicorn authority.main:app``.
"""

from authority.core.application import create_application
from authority.core.config.settings import settings
from authority.core.initialization import initialize_application

initialize_application(settings)

app = create_application(settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "authority.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        workers=settings.API_WORKERS,
    )
