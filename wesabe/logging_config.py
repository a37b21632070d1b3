"""Logging configuration for wesabe.

Library modules log through ``logging.getLogger(__name__)`` and never install
handlers themselves; the CLI calls setup_logging() once at startup.
"""

import logging
import sys


def setup_logging(level: str = "WARNING") -> logging.Logger:
    """Configure the ``wesabe`` logger with a single stderr handler.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Returns:
        The configured ``wesabe`` logger.
    """
    logger = logging.getLogger("wesabe")
    logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers so repeated calls don't duplicate output
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)

    # Keep request logs out of the root logger
    logger.propagate = False

    return logger
