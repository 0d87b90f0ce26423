"""Logging configuration helpers for the QuickScout application."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_DIR = os.getenv("QUICKSCOUT_LOG_DIR", "logs")
LOG_FILE = os.path.join(LOG_DIR, "app.log")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s%(scope)s"
DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Record attributes passed through ``extra=`` that identify a storefront scope.
SCOPE_FIELDS = ("session", "platform")


class ScopeFilter(logging.Filter):
    """Render ``extra={"session": ..., "platform": ...}`` as a trailing suffix."""

    def filter(self, record: logging.LogRecord) -> bool:
        parts = [
            f"{field}={getattr(record, field)}"
            for field in SCOPE_FIELDS
            if getattr(record, field, None)
        ]
        record.scope = f" [{' '.join(parts)}]" if parts else ""
        return True


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger with console and rotating file handlers."""
    os.makedirs(LOG_DIR, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(DEFAULT_LEVEL)
    logger.propagate = False

    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)
        scope_filter = ScopeFilter()

        file_handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=1_000_000,
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(DEFAULT_LEVEL)
        file_handler.addFilter(scope_filter)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.setLevel(DEFAULT_LEVEL)
        console_handler.addFilter(scope_filter)

        logger.addHandler(file_handler)
        logger.addHandler(console_handler)

    return logger
