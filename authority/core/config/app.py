"""
Process-level settings: identity, environment, HTTP binding and logging.
"""

from typing import List, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Settings for the HTTP process itself.

    Security Note:
        - ALLOWED_ORIGINS lists the browser origins allowed to call the API
          with credentials; never use ``*`` in production.
        - FRONTEND_URL is the base of every verification and password reset
          link sent by email and must be a host the operator controls.
    """

    PROJECT_NAME: str = "identity-authority"
    VERSION: str = "0.1.0"
    APP_ENV: str = "development"
    DEBUG: bool = False

    API_HOST: str = "0.0.0.0"
    API_PORT: int = Field(ge=1, le=65535, default=8000)
    API_WORKERS: int = Field(ge=1, default=1)

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    ALLOWED_ORIGINS: Union[str, List[str]] = Field(default="http://localhost:3000")
    FRONTEND_URL: str = "http://localhost:3000"

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """Accept a comma-separated string; blank entries are dropped."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("FRONTEND_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")
