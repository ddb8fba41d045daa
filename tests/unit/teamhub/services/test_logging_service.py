# -*- coding: utf-8 -*-
"""Location: ./tests/unit/teamhub/services/test_logging_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
"""

# Standard
import logging
import sys

# Third-Party
import orjson

# First-Party
from teamhub.services.logging_service import JSONFormatter, LoggingService


def test_initialize_installs_single_handler():
    service = LoggingService()
    root = logging.getLogger()
    before, level = len(root.handlers), root.level

    service.initialize(level="DEBUG", log_format="text")
    service.initialize(level="WARNING", log_format="json")

    try:
        assert len(root.handlers) == before + 1
        assert isinstance(service._handler.formatter, JSONFormatter)
        assert root.level == logging.WARNING
    finally:
        service.shutdown()
        root.setLevel(level)

    assert len(root.handlers) == before


def test_json_formatter_includes_exception():
    try:
        raise ValueError("bad")
    except ValueError:
        record = logging.LogRecord("teamhub", logging.ERROR, __file__, 1, "failed", (), exc_info=sys.exc_info())

    payload = orjson.loads(JSONFormatter().format(record))

    assert payload["level"] == "ERROR"
    assert "ValueError: bad" in payload["exc_info"]
