"""
logger.py

Responsibility: Configures process-wide logging once at startup.
Does NOT: decide what gets logged; modules log through logging.getLogger(__name__).
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that are chatty at DEBUG and INFO.
_QUIET_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: str = "info") -> None:
    """
    Sends all log records to stdout using the application's line format.

    Safe to call more than once; existing root handlers are replaced.

    Args:
        level: A level name such as "debug" or "info" (case-insensitive).

    Returns:
        None
    """
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
