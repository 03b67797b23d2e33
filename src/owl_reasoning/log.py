"""Logging setup for command-line use.

Library code only creates module loggers; handlers are attached here so
embedding applications keep control of their own logging config.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | int = logging.WARNING) -> None:
    """Send log records to stderr; stdout is reserved for JSON output."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
