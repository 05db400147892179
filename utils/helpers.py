"""Utility helpers: logging, clock, text truncation."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone

from config.settings import settings


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(name)-20s | %(levelname)-7s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(settings.log_level)
    return logger


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def truncate(text: str, limit: int, suffix: str = "...") -> str:
    """Cut text to ``limit`` characters, appending ``suffix`` if anything was dropped."""
    if len(text) <= limit:
        return text
    return text[:limit] + suffix
