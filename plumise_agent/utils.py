"""Logging and utility helpers for Plumise agent."""

import logging
import sys
from datetime import datetime, timezone
from typing import Optional

LOGGER_NAME = "plumise-agent"


def setup_logging(debug: bool = False) -> logging.Logger:
    """Configure logging for the agent.

    Args:
        debug: Enable debug-level logging

    Returns:
        Configured logger instance
    """
    level = logging.DEBUG if debug else logging.INFO

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Repeated calls (signal handler, tests) must not stack handlers
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Render a datetime as ISO-8601, passing None through."""
    if value is None:
        return None
    return value.isoformat()


def unix_to_iso(seconds: int) -> Optional[str]:
    """Format unix seconds as ISO-8601 UTC.

    Args:
        seconds: Unix timestamp; 0 or less means "never"

    Returns:
        ISO string like "2026-01-01T00:00:00+00:00", or None
    """
    if seconds <= 0:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()
