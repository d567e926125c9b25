import json
import logging

import pytest

from sendtrend.logging import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="sendtrend.dashboard",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Built dashboard for user=%s",
        args=("u1",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "sendtrend.dashboard"
        assert entry["message"] == "Built dashboard for user=u1"
        assert "timestamp" in entry

    def test_prefixed_extras_included(self):
        entry = json.loads(JSONFormatter().format(_record(sendtrend_duration_ms=12.5, other="x")))
        assert entry["sendtrend_duration_ms"] == 12.5
        assert "other" not in entry

    def test_exception_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            import sys

            record = _record()
            record.exc_info = sys.exc_info()
        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]


class TestSetupLogging:
    def test_installs_single_handler(self):
        root = logging.getLogger()
        saved = root.handlers[:], root.level
        try:
            setup_logging("json")
            setup_logging("text", "DEBUG")
            assert len(root.handlers) == 1
            assert root.level == logging.DEBUG
            assert not isinstance(root.handlers[0].formatter, JSONFormatter)
        finally:
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])

    def test_rejects_unknown_format(self):
        with pytest.raises(ValueError, match="log_format"):
            setup_logging("xml")
