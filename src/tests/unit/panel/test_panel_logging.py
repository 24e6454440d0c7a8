"""Tests for panel logging helpers."""

import json
import logging

from opencode_panel.config import LoggingConfig
from opencode_panel.logging import (
    PanelJsonFormatter,
    RateLimitFilter,
    clear_trace_context,
    set_trace_id,
)


def _record(msg: str, level: int = logging.INFO, lineno: int = 10) -> logging.LogRecord:
    return logging.LogRecord("opencode_panel.test", level, __file__, lineno, msg, None, None)


class TestRateLimitFilter:
    def test_drops_repeats_within_window(self):
        rate_limit = RateLimitFilter(window=60.0)

        assert rate_limit.filter(_record("inspect failed")) is True
        assert rate_limit.filter(_record("inspect failed")) is False
        assert rate_limit.filter(_record("other message")) is True

    def test_errors_always_pass(self):
        rate_limit = RateLimitFilter(window=60.0)

        assert rate_limit.filter(_record("boom", logging.ERROR)) is True
        assert rate_limit.filter(_record("boom", logging.ERROR)) is True

    def test_evicts_oldest_keys(self):
        rate_limit = RateLimitFilter(window=60.0, max_keys=2)

        for msg in ("a", "b", "c"):
            rate_limit.filter(_record(msg))

        # "a" was evicted, so it passes again
        assert rate_limit.filter(_record("a")) is True


class TestPanelJsonFormatter:
    def test_adds_service_and_trace_id(self):
        formatter = PanelJsonFormatter(LoggingConfig(service_name="panel-test"))
        set_trace_id("trace-123")
        try:
            record = _record("Project created")
            record.event = "project_created"
            payload = json.loads(formatter.format(record))
        finally:
            clear_trace_context()

        assert payload["message"] == "Project created"
        assert payload["service"] == "panel-test"
        assert payload["trace_id"] == "trace-123"
        assert payload["event"] == "project_created"
        assert payload["level"] == "INFO"

    def test_no_trace_id_outside_request(self):
        formatter = PanelJsonFormatter(LoggingConfig())

        payload = json.loads(formatter.format(_record("idle")))

        assert "trace_id" not in payload
