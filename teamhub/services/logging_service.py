# -*- coding: utf-8 -*-
"""Location: ./teamhub/services/logging_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Logging Service.
Configures the root logger once and hands out named loggers.

Examples:
    >>> service = LoggingService()
    >>> service.get_logger("teamhub.test").name
    'teamhub.test'
"""

# Standard
from datetime import datetime, timezone
import logging
import sys
from typing import Optional

# Third-Party
import orjson

# First-Party
from teamhub.config import settings

_TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """Render records as single-line JSON objects.

    Examples:
        >>> record = logging.LogRecord("teamhub", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        >>> line = JSONFormatter().format(record)
        >>> orjson.loads(line)["message"]
        'hello world'
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(payload, default=str).decode()


class LoggingService:
    """Root logger configuration plus named logger access."""

    def __init__(self) -> None:
        self._handler: Optional[logging.Handler] = None

    def initialize(self, level: Optional[str] = None, log_format: Optional[str] = None) -> None:
        """Install a stream handler on the root logger.

        Repeated calls replace the handler installed by the previous call.

        Args:
            level: Level name; defaults to ``settings.log_level``.
            log_format: ``json`` or ``text``; defaults to ``settings.log_format``.
        """
        root = logging.getLogger()
        if self._handler is not None:
            root.removeHandler(self._handler)

        handler = logging.StreamHandler(sys.stdout)
        if (log_format or settings.log_format) == "json":
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

        root.addHandler(handler)
        root.setLevel(level or settings.log_level)
        self._handler = handler

    def shutdown(self) -> None:
        """Detach and close the handler installed by :meth:`initialize`."""
        if self._handler is None:
            return
        logging.getLogger().removeHandler(self._handler)
        self._handler.close()
        self._handler = None

    def get_logger(self, name: str) -> logging.Logger:
        """Return a named logger.

        Args:
            name: Logger name, usually ``__name__``.

        Returns:
            logging.Logger: The logger.
        """
        return logging.getLogger(name)
