"""Logging for the ordering service.

Console and rotating file handlers sit underneath structlog. Production and
staging emit JSON lines; every other environment gets the rich console
renderer. Keys bound with ``structlog.contextvars`` (the API binds the request
method and path) are merged into every event.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

LEVEL_BY_ENVIRONMENT = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}
STRUCTURED_ENVIRONMENTS = ("production", "staging")

# Chatty below WARNING; cart and order events get lost in them
QUIET_LOGGERS = ("protean", "urllib3", "asyncio", "httpx")

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

logging.getLogger("protean").setLevel(logging.WARNING)


def get_environment() -> str:
    for variable in ("ENV", "ENVIRONMENT", "PROTEAN_ENV"):
        value = os.getenv(variable)
        if value:
            return value.lower()
    return "development"


def get_log_level() -> str:
    """``LOG_LEVEL`` wins; otherwise the level follows the environment."""
    return os.getenv("LOG_LEVEL", LEVEL_BY_ENVIRONMENT.get(get_environment(), "INFO")).upper()


def _rotating_file(path: Path, level) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    handler.setLevel(level)
    return handler


def _install_handlers(log_dir: str, log_file_prefix: str, level: str) -> None:
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [
        console,
        _rotating_file(log_path / f"{log_file_prefix}.log", level),
        _rotating_file(log_path / f"{log_file_prefix}_error.log", logging.ERROR),
    ]
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _render_processors() -> list:
    if get_environment() in STRUCTURED_ENVIRONMENTS:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [
        structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=4),
        )
    ]


def configure_logging(log_dir: str = "logs", log_file_prefix: str = "storefront") -> None:
    """Wire stdlib handlers and structlog together. Safe to call again."""
    level = get_log_level()
    _install_handlers(log_dir, log_file_prefix, level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            *_render_processors(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logger.debug("Logging configured", environment=get_environment(), level=level)
