"""
Loguru sink setup.

The engine only emits through ``loguru.logger``; applications call
``setup_logging`` once to choose the level and format.
"""

import sys

from loguru import logger

from config import get_settings

LOG_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | <cyan>{name}</cyan> - {message}"


def setup_logging(level: str | None = None) -> None:
    """Replace loguru's default handler with a stderr sink at ``level``."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or get_settings().log_level).upper(),
        format=LOG_FORMAT,
    )
