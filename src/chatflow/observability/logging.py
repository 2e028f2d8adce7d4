"""Logging setup for chatflow.

Console output is plain text; an optional rotating file receives one JSON
object per record (python-json-logger), including any ``extra`` fields such
as ``execution_id``.
"""

import logging
import logging.config
from collections.abc import MutableMapping
from typing import Any

PACKAGE_LOGGER = "chatflow"

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FIELDS = "%(asctime)s %(name)s %(levelname)s %(message)s"
JSON_FILE_MAX_BYTES = 10 * 1024 * 1024
JSON_FILE_BACKUPS = 5


def build_logging_config(level: str = "INFO", json_file: str | None = None) -> dict[str, Any]:
    """Return the ``dictConfig`` mapping used by :func:`setup_logging`."""
    level = level.upper()
    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "text",
            "level": level,
        },
    }
    if json_file:
        handlers["json_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": json_file,
            "maxBytes": JSON_FILE_MAX_BYTES,
            "backupCount": JSON_FILE_BACKUPS,
            "encoding": "utf-8",
            "formatter": "json",
            "level": level,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "text": {"format": TEXT_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
            "json": {"()": "pythonjsonlogger.json.JsonFormatter", "format": JSON_FIELDS},
        },
        "handlers": handlers,
        "loggers": {
            PACKAGE_LOGGER: {
                "handlers": list(handlers),
                "level": level,
                "propagate": False,
            },
        },
        # third-party libraries (httpx, uvicorn, aiosqlite) stay quiet
        "root": {"handlers": ["console"], "level": "WARNING"},
    }


def setup_logging(level: str = "INFO", json_file: str | None = None) -> None:
    """
    Configure logging for the chatflow package.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_file: When set, also write JSON lines to this rotating file
    """
    logging.config.dictConfig(build_logging_config(level, json_file))


class ContextAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges its context with per-call ``extra``."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


class ContextLogger:
    """Named logger that hands out adapters bound to identifiers."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def with_context(self, **context: Any) -> ContextAdapter:
        """
        Bind context to log records.

        Args:
            **context: Key-value pairs added to every record (e.g. execution_id)

        Returns:
            Adapter that logs through this logger
        """
        return ContextAdapter(self.logger, context)
