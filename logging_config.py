from __future__ import annotations

import logging
from logging.config import dictConfig

from settings import get_settings

# Keys passed through ``extra=`` by the collector, in the order they are appended.
CONTEXT_KEYS = (
    "path",
    "mtime",
    "outcome",
    "device_count",
    "device",
    "field",
    "column",
    "fail_count",
    "reason",
)

_configured = False


class ContextualFormatter(logging.Formatter):
    """Appends the collector's ``extra=`` context as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = " ".join(
            f"{key}={getattr(record, key)}"
            for key in CONTEXT_KEYS
            if getattr(record, key, None) is not None
        )
        return f"{message} | {context}" if context else message


def configure_logging(level: str | int | None = None, force: bool = False) -> None:
    """Install the contextual stream handler on the root logger.

    ``force`` re-applies the configuration, which ``serve --verbose`` needs
    because importing the app already configured logging at the default level.
    """
    global _configured
    if _configured and not force:
        return

    log_level = level if level is not None else get_settings().log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                }
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "contextual",
                }
            },
            "root": {"handlers": ["stderr"], "level": log_level},
        }
    )

    _configured = True
