"""Shared logging utilities for consistent client observability.

Fields passed through `extra=` are appended to the message as `key=value`
pairs, so request outcomes stay greppable in plain log output.

Usage example:
    from resilient_api_client.observability.logging import get_logger

    logger = get_logger("resilient_api_client.request_pipeline")
    logger.info("GET %s -> %s", url, status, extra={"status": status})
"""

from __future__ import annotations

import logging
import time
from typing import override

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
_RECORD_ATTRIBUTES = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Formatter that renders non-standard record attributes after the message."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        fields = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_") and value is not None
        ]
        if not fields:
            return text
        return f"{text} [{' '.join(fields)}]"


def get_logger(name: str) -> logging.Logger:
    """Return a standard logger configured for UTC timestamps.

    Args:
        name: Logger name (use a stable module-qualified name).

    Returns:
        A logger with a single stream handler and a consistent UTC format.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = ContextFormatter(fmt=_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT)
        formatter.converter = time.gmtime
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger
