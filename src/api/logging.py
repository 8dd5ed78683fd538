"""
Structured logging for the Norma API and maintenance scripts.

Every line looks like:

    2025-03-01 12:00:00.123 | INFO     | main | Ask-AI answered | condominio_id=abc

Extra key/value pairs are attached with ``log_event`` / ``log_error``.
"""

import logging
import os
import sys
from datetime import datetime
from typing import Any

DEFAULT_LEVEL = "INFO"

# Keys that must never reach the log output
_REDACTED_KEYS = {"authorization", "token", "password", "api_key", "service_role_key"}


class StructuredFormatter(logging.Formatter):
    """Pipe-separated formatter with millisecond timestamps and extras."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        level = record.levelname.ljust(8)
        module = record.name.split(".")[-1] if record.name else "root"

        line = f"{timestamp} | {level} | {module} | {record.getMessage()}"

        extras = getattr(record, "extras", None)
        if extras:
            line = f"{line} | " + " | ".join(
                f"{k}={'[redacted]' if k.lower() in _REDACTED_KEYS else v}"
                for k, v in extras.items()
            )

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"

        return line


def _level_from_env() -> int:
    name = os.getenv("LOG_LEVEL", DEFAULT_LEVEL).upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Get a logger writing structured lines to stdout.

    Handlers are attached once per logger name, so repeated calls are cheap.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        logger.setLevel(_level_from_env())

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        logger.propagate = False

    return logger


def configure_root_logging() -> None:
    """Route library loggers (``logging.getLogger(__name__)``) through the same format.

    Used by the CLI scripts and the API at startup.
    """
    root = logging.getLogger()
    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)
    root.setLevel(_level_from_env())


def _emit(logger: logging.Logger, level: int, message: str, extras: dict[str, Any]) -> None:
    if not logger.isEnabledFor(level):
        return
    record = logger.makeRecord(logger.name, level, "", 0, message, (), None)
    record.extras = extras
    logger.handle(record)


def log_event(logger: logging.Logger, action: str, **kwargs: Any) -> None:
    """Log an informational event with structured extras."""
    _emit(logger, logging.INFO, action, kwargs)


def log_error(logger: logging.Logger, action: str, error: Exception, **kwargs: Any) -> None:
    """Log an error with its type, message and structured extras."""
    _emit(logger, logging.ERROR, f"{action}: {type(error).__name__}: {error}", kwargs)
