"""Parsing and normalization helpers for configuration values."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _parse_int(value: Any, name: str, default: int) -> int:
    """Parse an integer setting, falling back to *default* with a warning."""
    try:
        return int(str(value).strip())
    except ValueError:
        logger.warning("Invalid integer for %s: %r. Using default %d", name, value, default)
        return default


def _parse_float(value: Any, name: str, default: float) -> float:
    """Parse a float setting, falling back to *default* with a warning."""
    try:
        return float(str(value).strip())
    except ValueError:
        logger.warning("Invalid number for %s: %r. Using default %s", name, value, default)
        return default
