"""Structured logging for MarketPulse.

Every module logs through a child of the ``marketpulse`` logger. Lines are
JSON objects by default (LOG_FORMAT=json) or pipe-separated text
(LOG_FORMAT=simple). Counts and identifiers that downstream tooling may
want to filter on are passed as structured fields with ``log_event``
rather than interpolated into the message.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from marketpulse.config import get_config

ROOT_LOGGER = "marketpulse"


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fields = getattr(record, "extra_fields", None)
        if fields:
            payload.update(fields)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class SimpleFormatter(logging.Formatter):
    """Human-readable lines; structured fields are appended as key=value."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = getattr(record, "extra_fields", None)
        if fields:
            line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


_initialized = False


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    log_file: str | None = None,
) -> None:
    """Attach handlers to the ``marketpulse`` logger once per process.

    Args:
        level: Log level name; LOG_LEVEL when omitted.
        format_type: 'json' or 'simple'; LOG_FORMAT when omitted.
        log_file: Extra file to append to; LOG_FILE when omitted.
    """
    global _initialized
    if _initialized:
        return

    settings = get_config().logging
    numeric_level = _level_from_name(level or settings.level)
    formatter: logging.Formatter = (
        SimpleFormatter() if (format_type or settings.format) == "simple" else JSONFormatter()
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_file = log_file if log_file is not None else settings.file
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    package_logger = logging.getLogger(ROOT_LOGGER)
    package_logger.setLevel(numeric_level)
    package_logger.handlers.clear()
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    # Keep propagation on so pytest's caplog sees records
    package_logger.propagate = True

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """Child logger under ``marketpulse`` (e.g. 'content.score')."""
    setup_logging()
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_event(logger: logging.Logger, level: int, message: str, **fields: Any) -> None:
    """Log a message with structured fields attached."""
    logger.log(level, message, extra={"extra_fields": fields})


def reset_logging() -> None:
    """Drop handlers so the next get_logger call reconfigures (for tests)."""
    global _initialized
    _initialized = False
    package_logger = logging.getLogger(ROOT_LOGGER)
    for handler in package_logger.handlers:
        handler.close()
    package_logger.handlers.clear()
