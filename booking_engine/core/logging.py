from __future__ import annotations

import logging
import sys

from loguru import logger

_LOGGING_CONFIGURED = False

# Chatty stdlib loggers kept out of the request log unless explicitly raised
_QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")


def setup_logging(level: str = "INFO") -> None:
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    level = level.upper()
    logging.basicConfig(level=level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.remove()
    logger.add(
        sys.stdout,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {name}:{function}:{line} - {message}",
        enqueue=True,
        diagnose=False,
        backtrace=False,
    )
    logger.debug("Logging configured at {level}", level=level)

    _LOGGING_CONFIGURED = True
