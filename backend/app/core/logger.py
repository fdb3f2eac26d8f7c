"""
Custom logging configuration.

Responsibilities:
- Setup the application logger
- Configure log levels and formats
- Output logs to console
"""

import logging
import sys

LOGGER_NAME = "replicate_proxy"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(LOGGER_NAME)


def setup_logger(level: str = "INFO") -> logging.Logger:
    """Configures the application logger."""
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    logger.propagate = False
    return logger
