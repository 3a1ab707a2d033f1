# filemon/logging/logger.py
"""
Logger factory for filemon.

Every module does:

    from filemon.logging.logger import get_logger
    logger = get_logger(__name__)

Handlers are attached once per logger. The level comes from
FILEMON_LOG_LEVEL (default INFO).
"""

from __future__ import annotations

import logging
import os
import sys

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _level() -> str:
    return os.getenv("FILEMON_LOG_LEVEL", "INFO").upper()


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(_level())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
