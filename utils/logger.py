# -*- coding: utf-8 -*-
"""
Logging configuration.

All wizard loggers hang below the ``wizard_flow`` root. Records logged
through a session logger carry the session id, so several engines
running in one process stay apart in the shared rotating log file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

ROOT_LOGGER_NAME = "wizard_flow"
NO_SESSION = "-"

# Will be set by setup_logger
_logger: Optional[logging.Logger] = None


class SessionFilter(logging.Filter):
    """Guarantees every record has a ``session`` attribute for the formatters."""

    def filter(self, record):
        if not hasattr(record, "session"):
            record.session = NO_SESSION
        return True


def setup_logger(console: bool = True) -> logging.Logger:
    """
    Configure the wizard_flow logger.

    The file handler always records DEBUG; the console level comes from
    Config.LOG_LEVEL. Calling it again replaces the handlers.

    Args:
        console: Also log to stdout (the headless checker turns this on)
    """
    global _logger

    # Import here to avoid circular imports
    from app.config import Config

    Config.LOGS_DIR.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    session_filter = SessionFilter()

    file_handler = RotatingFileHandler(
        Config.LOG_PATH,
        maxBytes=Config.LOG_MAX_BYTES,
        backupCount=Config.LOG_BACKUP_COUNT,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.addFilter(session_filter)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(session)s | %(name)s | %(message)s",
        datefmt=Config.DATETIME_FORMAT
    ))
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, Config.LOG_LEVEL, logging.INFO))
        console_handler.addFilter(session_filter)
        console_handler.setFormatter(logging.Formatter("%(levelname)-8s | %(session)s | %(message)s"))
        logger.addHandler(console_handler)

    _logger = logger
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger for a module."""
    global _logger

    if _logger is None:
        _logger = setup_logger(console=False)

    return _logger.getChild(name)


class SessionLogAdapter(logging.LoggerAdapter):
    """Attaches the wizard session id to every record."""

    def process(self, msg, kwargs):
        kwargs.setdefault("extra", {})["session"] = self.extra["session"]
        return msg, kwargs


def get_session_logger(name: str, session_id: str) -> SessionLogAdapter:
    """Get a module logger bound to one wizard session."""
    return SessionLogAdapter(get_logger(name), {"session": session_id})
