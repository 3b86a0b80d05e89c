"""Structured logging setup.

Log lines are structlog events with keyword context, e.g.:
  {"event": "themes_listing_complete", "count": 4, "kep_count": 3}

Rendering depends on the environment: a colourised console in development,
one JSON object per line in production (for log shipping).

Usage:
    from release_themes.logging_config import setup_logging, get_logger

    setup_logging(environment="production")
    logger = get_logger(__name__)
    logger.info("themes_listing_started", themes="1234,5678")
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog


def setup_logging(
    environment: str | None = None,
    log_level: str | None = None,
) -> None:
    """Configure structlog and quiet the httpx request logger.

    Args:
        environment: "development" or "production". Reads from the
                     ENVIRONMENT env var if not provided.
        log_level: DEBUG, INFO, WARNING or ERROR. Reads from the LOG_LEVEL
                   env var if not provided.
    """
    env = environment or os.environ.get("ENVIRONMENT", "development")
    level = getattr(logging, (log_level or os.environ.get("LOG_LEVEL", "INFO")).upper())

    if env == "production":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=env == "production",
    )

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def _stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    # Logs go to stderr so CLI output on stdout stays machine-readable. The
    # stream is looked up per logger since sys.stderr may be swapped.
    return structlog.PrintLogger(file=sys.stderr)


def get_logger(name: str) -> Any:
    """Get a structlog logger bound to ``name`` (typically __name__)."""
    return structlog.get_logger(name)
