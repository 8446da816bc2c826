"""Logging setup shared by the API, the Engine runner and the management CLI.

Records flow through the standard library (stdout plus a pair of rotating
files) and are rendered by structlog: coloured lines while developing, one
JSON object per line in production and staging. Request-scoped values bound
with ``add_context`` ride along on every line until ``clear_context``.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

_LEVEL_BY_ENVIRONMENT = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

# Chatty third-party loggers kept at WARNING
_QUIET_LOGGERS = ("asyncio", "urllib3", "requests", "protean", "uvicorn.access")

_ROTATE_BYTES = 10 * 1024 * 1024
_ROTATE_BACKUPS = 5


def _environment() -> str:
    return (os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def _structured_output() -> bool:
    return _environment() in ("production", "staging")


def get_log_level() -> str:
    """``LOG_LEVEL`` if set, otherwise the level for the current environment."""
    return os.getenv("LOG_LEVEL", _LEVEL_BY_ENVIRONMENT.get(_environment(), "INFO"))


def _rotating(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=_ROTATE_BYTES,
        backupCount=_ROTATE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def _handlers(level: str, log_dir: str | None, prefix: str) -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    handlers = [console]

    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating(directory / f"{prefix}.log", level))
        handlers.append(_rotating(directory / f"{prefix}_error.log", logging.ERROR))
    return handlers


def setup_stdlib_logging(
    level: str | None = None,
    log_dir: str | None = "logs",
    log_file_prefix: str = "requisitions",
) -> None:
    """Route the root logger to stdout and, unless ``log_dir`` is None, to log files."""
    level = level or get_log_level()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = _handlers(level, log_dir, log_file_prefix)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _renderer():
    if _structured_output():
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=True, max_frames=2),
    )


def setup_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            _renderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(
    level: str | None = None,
    log_dir: str | None = "logs",
    log_file_prefix: str = "requisitions",
) -> None:
    """Configure stdlib handlers and structlog in one call. Safe to call again."""
    setup_stdlib_logging(level=level, log_dir=log_dir, log_file_prefix=log_file_prefix)
    setup_structlog()


def add_context(**kwargs: Any) -> None:
    """Bind values (request path, actor) onto every following log line."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
