"""Logging configuration for the wiki."""

from __future__ import annotations

import logging
from typing import Union

_CONSOLE_HANDLER_ATTR = "_is_wiki_console_handler"

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(event)s %(message)s"


class EventFormatter(logging.Formatter):
    """``extra={"event": ...}`` を持たないレコードでも書式が崩れないフォーマッタ。"""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "event"):
            record.event = "-"
        return super().format(record)


def configure_logging(logger: logging.Logger, level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Attach the console handler to *logger* if missing and set its level."""

    for handler in logger.handlers:
        if getattr(handler, _CONSOLE_HANDLER_ATTR, False):
            break
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(EventFormatter(DEFAULT_FORMAT))
        setattr(handler, _CONSOLE_HANDLER_ATTR, True)
        logger.addHandler(handler)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    return logger


def log_event_error(logger: logging.Logger, message: str, event: str, exc_info: bool = True, **extra_attrs):
    """Log an error tagged with *event*.

    Args:
        logger: Logger instance to use.
        message: Error message.
        event: Event identifier for categorization.
        exc_info: Whether to include exception information.
        **extra_attrs: Additional attributes to include in log record.
    """
    extra = {
        'event': event,
        **extra_attrs
    }

    logger.error(message, exc_info=exc_info, extra=extra)


def log_event_warning(logger: logging.Logger, message: str, event: str, **extra_attrs):
    """Log a warning tagged with *event*."""
    extra = {
        'event': event,
        **extra_attrs
    }

    logger.warning(message, extra=extra)


def log_event_info(logger: logging.Logger, message: str, event: str, **extra_attrs):
    """Log info tagged with *event*.

    Args:
        logger: Logger instance to use.
        message: Info message.
        event: Event identifier for categorization.
        **extra_attrs: Additional attributes to include in log record.
    """
    extra = {
        'event': event,
        **extra_attrs
    }

    logger.info(message, extra=extra)
