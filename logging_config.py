"""Loguru setup shared by the app, the booking engine and the notifier."""

import sys

from loguru import logger

from config import LOG_LEVEL

log_format = " | ".join(
    (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green>",
        "<level>{level:<8}</level>",
        "<cyan>{name}:{function}:{line}</cyan>",
        "{message}",
    )
)

logger.remove()
logger.add(sys.stderr, format=log_format, level=LOG_LEVEL)

__all__ = ["logger"]
