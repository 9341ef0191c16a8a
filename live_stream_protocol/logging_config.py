"""
Logging Configuration Module

Provides centralized loguru configuration via LOG_LEVEL environment variable.

Usage:
    from live_stream_protocol.logging_config import configure_logging
    configure_logging()  # Call once at startup

Environment Variables:
    LOG_LEVEL: Controls console log verbosity (default: INFO)
        - DEBUG: All logs, including every emitted client event
        - INFO: Connection lifecycle, tool calls and turn summaries (default)
        - WARNING: Unmatched records, stream residue, unsupported operations
        - ERROR: Transport failures and malformed records only
"""

import os
import sys

from loguru import logger


# Valid log levels (loguru-compatible)
VALID_LOG_LEVELS: set[str] = {"DEBUG", "INFO", "WARNING", "ERROR"}

# Default log level when not specified
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - {message}"
)


def get_log_level() -> str:
    """
    Get the configured log level from environment variable.

    Returns:
        str: Log level (DEBUG, INFO, WARNING, or ERROR).
             Falls back to INFO if invalid or not set.
    """
    level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

    if level not in VALID_LOG_LEVELS:
        return DEFAULT_LOG_LEVEL

    return level


def configure_logging(level: str | None = None) -> None:
    """
    Configure loguru with a single stderr sink.

    Args:
        level: Explicit level overriding LOG_LEVEL (same accepted values)
    """
    resolved = (level or get_log_level()).upper()
    if resolved not in VALID_LOG_LEVELS:
        resolved = DEFAULT_LOG_LEVEL

    # Remove default stderr handler
    logger.remove()

    logger.add(
        sys.stderr,
        level=resolved,
        format=LOG_FORMAT,
        colorize=True,
    )

    logger.debug(f"Logging configured: console level={resolved}")
