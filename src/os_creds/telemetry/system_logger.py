"""System logger for operational and debug events.

Events are logged as dicts and rendered as one JSON object per line:

    logger.debug({"event": "token_request", "url": url, "methods": ["password"]})

produces

    {"time": "2025-01-15T10:30:00.123Z", "level": "DEBUG", "event": "token_request", ...}

Output goes to stderr so that stdout stays reserved for shell exports.
Secrets (passwords, TOTP codes, tokens) must never be put in an event;
log their lengths instead.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

SYSTEM_LOGGER_NAME = "os-creds.system"


class JsonLineFormatter(logging.Formatter):
    """Render dict messages as JSON lines, wrap plain strings in {"message": ...}."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
        }

        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            payload["message"] = record.getMessage()

        if record.exc_info:
            payload["stacktrace"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def get_system_logger() -> logging.Logger:
    """Get the process-wide system logger.

    The logger has no handler until configure_system_logger() is called,
    so library use (and tests) stay silent.

    Returns:
        The os-creds system logger.
    """
    return logging.getLogger(SYSTEM_LOGGER_NAME)


def configure_system_logger(
    level: str | int = logging.WARNING,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach a JSON-lines stderr handler to the system logger.

    Safe to call repeatedly: previously attached handlers are replaced.

    Args:
        level: Logging level name or number.
        stream: Output stream (default: sys.stderr).

    Returns:
        The configured system logger.
    """
    logger = get_system_logger()

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonLineFormatter())
    logger.addHandler(handler)
    logger.setLevel(level if isinstance(level, int) else level.upper())
    logger.propagate = False
    return logger
