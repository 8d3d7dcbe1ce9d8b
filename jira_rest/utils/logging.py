"""Logging utilities for the Jira REST client.

Only the package logger ``jira_rest`` owns a handler. Module loggers such as
``jira_rest.client.dispatch`` propagate to it.
"""

import logging
import sys
from functools import lru_cache
from typing import Optional

PACKAGE_LOGGER = "jira_rest"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _stderr_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


@lru_cache
def get_logger(name: str = PACKAGE_LOGGER, level: Optional[str] = None) -> logging.Logger:
    """Get a logger for the package or one of its modules.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    numeric = getattr(logging, level) if level else None

    if name.startswith(PACKAGE_LOGGER + "."):
        if numeric is not None:
            logger.setLevel(numeric)
        return logger

    if not logger.handlers:
        numeric = numeric if numeric is not None else logging.INFO
        logger.addHandler(_stderr_handler(numeric))
        logger.propagate = False

    if numeric is not None:
        logger.setLevel(numeric)
        for handler in logger.handlers:
            handler.setLevel(numeric)

    return logger


def configure_logging(level: str = "INFO") -> None:
    """Configure package logging.

    Args:
        level: Log level to set
    """
    get_logger.cache_clear()

    # Handlers may hold a stream that has since been closed
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    get_logger(PACKAGE_LOGGER, level.upper())

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
