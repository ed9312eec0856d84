"""Structured logging for the identity authority.

Log events are key-value pairs rendered as JSON lines in deployed
environments and as colored console output during development. Standard
library loggers (uvicorn, SQLAlchemy, httpx) are routed through the same
handler so every line shares one format and level.
"""

import logging

import structlog

# httpx logs full request URLs at INFO; Google token lookups carry the
# id_token in the query string.
_QUIET_LOGGERS = {"httpx": logging.WARNING, "httpcore": logging.WARNING, "passlib": logging.ERROR}


def configure_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Configure structlog and the root logger.

    Args:
        log_level: Minimum level name, e.g. ``"INFO"``.
        json_logs: Render JSON lines instead of console output.
    """
    logging.basicConfig(format="%(message)s", level=log_level.upper())
    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
