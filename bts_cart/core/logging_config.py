"""Package logger setup."""
from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("bts_cart")


def setup_logging(level: str | int = "INFO") -> logging.Logger:
    """Configure root handlers once and set the package log level."""
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    if not logging.getLogger().handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(level)
    return logger


__all__ = ["logger", "setup_logging"]
