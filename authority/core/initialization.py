"""Process initialization run before the application is created.
"""

from dotenv import load_dotenv

from authority.core.config.settings import Settings
from authority.core.logging import configure_logging


def initialize_application(settings: Settings) -> None:
    """Load environment variables, configure logging and validate settings."""
    load_dotenv(override=True)
    configure_logging(log_level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    settings.validate_required_fields()
