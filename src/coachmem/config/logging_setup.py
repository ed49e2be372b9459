from __future__ import annotations

import logging
from typing import Optional

from .settings import LoggingConfig

_ROOT_LOGGER = "coachmem"


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Attach a stream handler to the package logger once."""
    config = config or LoggingConfig()
    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(config.format))
        logger.addHandler(handler)
    return logger
