"""
Tests for logging setup and formatters.
"""

from __future__ import annotations

import json
import logging

from boardmetrics.logging_config import HumanFormatter, JSONFormatter, setup_logging


def _record(msg: str = "scrape served", **extra) -> logging.LogRecord:
    record = logging.LogRecord("boardmetrics.web.server", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:

    def test_json_includes_extra_fields(self):
        line = JSONFormatter().format(_record(request_path="/metrics", status_code=200))
        entry = json.loads(line)

        assert entry["level"] == "INFO"
        assert entry["logger"] == "boardmetrics.web.server"
        assert entry["message"] == "scrape served"
        assert entry["request_path"] == "/metrics"
        assert entry["status_code"] == 200

    def test_human_short_module(self):
        line = HumanFormatter().format(_record())

        assert "[server         ]" in line
        assert line.endswith("scrape served")


class TestSetupLogging:

    def test_level_and_format(self):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            setup_logging("debug", "json")

            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_unknown_level_falls_back_to_info(self):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            setup_logging("chatty", "text")

            assert root.level == logging.INFO
            assert isinstance(root.handlers[0].formatter, HumanFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
