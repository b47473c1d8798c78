"""Logging setup shared by the CLI scripts.

LOG_LEVEL (DEBUG|INFO|WARNING|ERROR|CRITICAL) picks the level when none is
passed explicitly. DEBUG switches to a verbose format that includes module and
line number.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Literal

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

VERBOSE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
CONCISE_FORMAT = "%(levelname).1s %(name)s %(message)s"


def resolve_level(level: str | None = None) -> int:
    level_str = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    return _LEVELS.get(level_str, logging.INFO)


def setup_logging(level: LogLevel | None = None) -> None:
    """Configure the root logger with a single stderr handler."""
    numeric_level = resolve_level(level)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    is_debug = numeric_level <= logging.DEBUG
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(
        logging.Formatter(fmt=VERBOSE_FORMAT if is_debug else CONCISE_FORMAT, datefmt="%H:%M:%S")
    )
    root.setLevel(numeric_level)
    root.addHandler(handler)

    # SQL echo only in full debug
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if is_debug else logging.WARNING)

