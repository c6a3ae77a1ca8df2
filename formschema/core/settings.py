"""
Runtime settings read from the environment.

The composition root loads `.env` (python-dotenv) before calling
load_settings(), so variables may live in either place.
"""

import logging
import os
from dataclasses import dataclass

from formschema.core.compiler import PropertyOrder

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 128
DEFAULT_LOG_LEVEL = "INFO"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class Settings:
    """Validated runtime configuration."""

    cache_size: int = DEFAULT_CACHE_SIZE
    property_order: PropertyOrder = PropertyOrder.FIELDS
    log_level: str = DEFAULT_LOG_LEVEL


def _read_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using %d", name, raw, default)
        return default
    if value < 0:
        logger.warning("Negative %s=%r, using %d", name, raw, default)
        return default
    return value


def _read_order(name: str) -> PropertyOrder:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return PropertyOrder.FIELDS
    try:
        return PropertyOrder(raw.strip().lower())
    except ValueError:
        logger.warning("Invalid %s=%r, using 'fields'", name, raw)
        return PropertyOrder.FIELDS


def _read_log_level(name: str) -> str:
    raw = (os.getenv(name) or DEFAULT_LOG_LEVEL).strip().upper()
    if raw not in _LOG_LEVELS:
        logger.warning("Invalid %s=%r, using %s", name, raw, DEFAULT_LOG_LEVEL)
        return DEFAULT_LOG_LEVEL
    return raw


def load_settings() -> Settings:
    """Build Settings from FORMSCHEMA_* environment variables."""
    return Settings(
        cache_size=_read_int("FORMSCHEMA_CACHE_SIZE", DEFAULT_CACHE_SIZE),
        property_order=_read_order("FORMSCHEMA_PROPERTY_ORDER"),
        log_level=_read_log_level("FORMSCHEMA_LOG_LEVEL"),
    )
