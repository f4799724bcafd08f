"""Logging configuration shared by the library and the server."""

from __future__ import annotations

import logging
import sys

from sectionwiki.config import SECTIONWIKI_LOG_LEVEL

_ROOT_LOGGER = "sectionwiki"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
    | {"message", "asctime", "taskName"}
)

_configured = False


class ExtraFieldsFormatter(logging.Formatter):
    """Formatter that appends ``extra=`` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not extras:
            return message
        pairs = " ".join(f"{key}={value!r}" for key, value in sorted(extras.items()))
        return f"{message} [{pairs}]"


def configure_logging(level: str | int | None = None) -> None:
    """Install a stderr handler on the ``sectionwiki`` and ``server`` loggers.

    Calling it more than once only updates the level.
    """
    global _configured

    resolved = level if level is not None else SECTIONWIKI_LOG_LEVEL
    if isinstance(resolved, str):
        resolved = resolved.upper()

    for name in (_ROOT_LOGGER, "server"):
        logger = logging.getLogger(name)
        logger.setLevel(resolved)
        if not _configured:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(ExtraFieldsFormatter(_LOG_FORMAT))
            logger.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, configuring handlers on first use."""
    if not _configured:
        configure_logging()
    return logging.getLogger(name)
