"""
Logging Configuration

One console handler on the root logger, shared by every module through
get_logger(__name__). Source adapters log searches at INFO and skipped
records or degraded sources at WARNING.
"""
import logging
import sys
from typing import Optional, TextIO

from evidence_engine.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# HTTP client and limiter internals log every request at DEBUG/INFO
QUIET_LOGGERS = ("httpx", "httpcore", "slowapi")

_HANDLER_NAME = "evidence_engine.console"


def setup_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    """
    Configure the root logger.

    Safe to call repeatedly: the engine's own console handler is replaced,
    handlers installed by others (pytest, uvicorn) are left alone.

    Args:
        level: Log level name; unknown names fall back to INFO
        stream: Where to write, stdout by default
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in list(root_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.set_name(_HANDLER_NAME)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module; pass __name__."""
    return logging.getLogger(name)


setup_logging(settings.log_level)
