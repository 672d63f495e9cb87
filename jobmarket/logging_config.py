"""Logging configuration for the job market service."""

import logging
import sys

from jobmarket.config import get_settings


def configure_logging() -> None:
    """
    Configure root logging to stdout at the configured level.

    Degraded paths in the filter engine (exchange-rate fallback, badge
    fallback, dropped stored conditions) log warnings, so they need a
    handler that is visible in the container output.
    """
    level = logging.getLevelName(get_settings().log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(handler)

    # Per-request chatter from the HTTP client and the ORM
    for name in ("httpx", "httpcore", "sqlalchemy.engine"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info("Logging configured at %s", logging.getLevelName(level))
