"""Tests for logging configuration."""

import json
import logging
import sys

import pytest

from hlpfl_forms.core.logging import DEV_FORMAT, JSONFormatter, get_logger, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="hlpfl_forms.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="GET /api/forms 200",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "hlpfl_forms.test"
        assert entry["message"] == "GET /api/forms 200"
        assert "timestamp" in entry

    def test_request_fields_promoted(self):
        record = _record(
            method="GET", path="/api/forms", status=200, duration_ms=1.5, client_id="1.2.3.4"
        )
        entry = json.loads(JSONFormatter().format(record))

        assert entry["method"] == "GET"
        assert entry["path"] == "/api/forms"
        assert entry["status"] == 200
        assert entry["duration_ms"] == 1.5
        assert entry["client_id"] == "1.2.3.4"

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        entry = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in entry["exception"]


class TestSetupLogging:
    def test_structured_format_installs_json_formatter(self):
        previous = logging.root.handlers[:]
        previous_level = logging.root.level
        try:
            setup_logging(level="WARNING", format_type="structured")
            assert isinstance(logging.root.handlers[0].formatter, JSONFormatter)
            assert logging.root.level == logging.WARNING
        finally:
            logging.root.handlers = previous
            logging.root.setLevel(previous_level)

    @pytest.mark.parametrize(
        "level,store_level", [("DEBUG", logging.DEBUG), ("INFO", logging.WARNING)]
    )
    def test_dev_format_and_store_loggers(self, level, store_level):
        previous = logging.root.handlers[:]
        previous_level = logging.root.level
        try:
            setup_logging(level=level, format_type="dev")
            formatter = logging.root.handlers[0].formatter
            assert not isinstance(formatter, JSONFormatter)
            assert formatter._fmt == DEV_FORMAT
            assert logging.getLogger("aiosqlite").level == store_level
            assert logging.getLogger("uvicorn.access").level == logging.WARNING
        finally:
            logging.root.handlers = previous
            logging.root.setLevel(previous_level)

    def test_get_logger_prefix(self):
        assert get_logger("main").name == "hlpfl_forms.main"
