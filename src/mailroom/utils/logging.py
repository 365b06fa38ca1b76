"""Logging configuration for the mailroom service.

stdlib handlers carry the output (console plus rotating files); structlog
builds the event dicts and renders them as JSON in production and as
colourised console lines everywhere else.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

LOG_FILE = "mailroom.log"
ERROR_LOG_FILE = "mailroom_error.log"
MAX_LOG_BYTES = 10 * 1024 * 1024

# Third-party loggers that are chatty at DEBUG
QUIET_LOGGERS = ("urllib3", "asyncio", "botocore", "boto3", "httpx", "httpcore")

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}


def current_environment() -> str:
    return (os.getenv("PROTEAN_ENV") or os.getenv("ENVIRONMENT") or "development").lower()


def get_log_level() -> str:
    """Log level for the current environment, overridable with LOG_LEVEL."""
    return os.getenv("LOG_LEVEL", _LEVELS.get(current_environment(), "INFO")).upper()


def setup_stdlib_logging(log_dir: Path | str = "logs", to_files: bool = True) -> None:
    log_level = get_log_level()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    if to_files:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / LOG_FILE,
            maxBytes=MAX_LOG_BYTES,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)

        error_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / ERROR_LOG_FILE,
            maxBytes=MAX_LOG_BYTES,
            backupCount=5,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)

        root_logger.addHandler(file_handler)
        root_logger.addHandler(error_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def build_processors(json_output: bool) -> list:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
                structlog.processors.CallsiteParameter.THREAD_NAME,
            ]
        ),
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=4),
            )
        )
    return processors


def setup_structlog() -> None:
    structlog.configure(
        processors=build_processors(json_output=current_environment() in ("production", "staging")),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(log_dir: Path | str = "logs", to_files: bool = True) -> None:
    """Configure all logging for the service. Call once at process start."""
    setup_stdlib_logging(log_dir=log_dir, to_files=to_files)
    setup_structlog()


def bind_context(**kwargs: Any) -> None:
    """Attach key/values to every log line emitted from this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
