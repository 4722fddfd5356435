"""Engine-wide logger set up on top of the standard logging module."""

from __future__ import annotations

import logging
import sys

LOG_NAME = "engine"
TRACE = 5

_FORMAT = "[%(asctime)s] %(name)s: %(message)s"
_DATE_FORMAT = "%H:%M:%S"

logging.addLevelName(TRACE, "TRACE")


class _StdoutHandler(logging.StreamHandler):
    """Stream handler that always writes to the current ``sys.stdout``."""

    def __init__(self) -> None:
        super().__init__(sys.stdout)

    def emit(self, record: logging.LogRecord) -> None:
        self.stream = sys.stdout
        super().emit(record)


def init() -> logging.Logger:
    """Configure the engine logger to emit every level to standard output."""
    logger = logging.getLogger(LOG_NAME)
    if not any(isinstance(handler, _StdoutHandler) for handler in logger.handlers):
        handler = _StdoutHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, _DATE_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(TRACE)
    return logger


def get_logger() -> logging.Logger:
    """Return the engine logger."""
    return logging.getLogger(LOG_NAME)