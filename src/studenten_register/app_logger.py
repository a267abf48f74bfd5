"""
Logging für das Paket.

Bibliotheksmodule holen sich nur Kind-Logger über get_logger().
Handler werden erst vom Einstiegspunkt über setup_logging() gesetzt.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

LOGGER_NAME = "studenten_register"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _level(raw: Optional[str]) -> int:
    return getattr(logging, (raw or "INFO").upper(), logging.INFO)


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Richtet den Paket-Logger ein.
    - Level aus Argument oder SRMS_LOG_LEVEL (Default INFO)
    - Es wird höchstens ein StreamHandler angehängt
    """
    lvl = _level(level or os.getenv("SRMS_LOG_LEVEL"))

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(lvl)

    # Doppelte Handler vermeiden
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(ch)

    for h in logger.handlers:
        h.setLevel(lvl)

    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    base = logging.getLogger(LOGGER_NAME)
    return base.getChild(name) if name else base
