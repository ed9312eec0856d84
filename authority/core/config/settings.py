"""Composed settings for the identity authority.

`Settings` merges the app, database, redis, auth, email and event groups and
reads them from the environment, then from the env file chosen by APP_ENV:

- development: ``.env``; debug and email test mode on
- test: ``.env.test``; email test mode on
- staging / production: ``.env.staging`` / ``.env.production``; SMTP
  credentials required

The module-level `settings` is read only by the process entry point. The
container hands each component the values it needs, and tests construct
their own `Settings(_env_file=None, ...)`.
"""

import logging
import os
from pathlib import Path

from pydantic_settings import SettingsConfigDict

from .app import AppSettings
from .auth import AuthSettings
from .database import DatabaseSettings
from .email import EmailSettings
from .events import EventSettings
from .redis import RedisSettings

logger = logging.getLogger(__name__)

_ENV_FILES = {"test": ".env.test", "staging": ".env.staging", "production": ".env.production"}


class Settings(
    AppSettings, DatabaseSettings, RedisSettings, AuthSettings, EmailSettings, EventSettings
):
    """All configuration groups in one object.

    Security Note:
        - Database and SMTP passwords and the JWT private key are SecretStr;
          log the settings object only through its masked repr.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._apply_environment_defaults()

    def _apply_environment_defaults(self) -> None:
        if self.APP_ENV in ("development", "test"):
            self.EMAIL_TEST_MODE = True
        if self.APP_ENV == "development":
            self.DEBUG = True
        logger.info(
            "Settings loaded for %s (debug=%s, email_test_mode=%s)",
            self.APP_ENV,
            self.DEBUG,
            self.EMAIL_TEST_MODE,
        )

    def validate_required_fields(self) -> None:
        """Fail startup when a value needed to serve requests is empty.

        SMTP problems are logged rather than raised: notification delivery is
        best-effort and must not keep the service down. A missing signing key
        is reported by the token issuer when the container is built.

        Raises:
            ValueError: If a required field is empty.
        """
        required = ("PROJECT_NAME", "DATABASE_URL", "JWT_ALGORITHM", "JWT_ISSUER", "JWT_AUDIENCE")
        missing = [name for name in required if not getattr(self, name, None)]
        if missing:
            message = f"Missing required environment variables: {', '.join(missing)}"
            logger.error(message)
            raise ValueError(message)

        try:
            self.validate_smtp_config()
        except ValueError as e:
            logger.error("Email configuration error: %s", e)


def create_settings() -> Settings:
    """Build settings from the env file that matches APP_ENV, if present."""
    env_file = _ENV_FILES.get(os.getenv("APP_ENV", "development"))
    if env_file and Path(env_file).exists():
        logger.info("Loading environment configuration from %s", env_file)
        return Settings(_env_file=env_file)
    return Settings()


settings = create_settings()
