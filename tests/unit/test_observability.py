"""Tests for structured logging and the MLflow tracing helpers."""

import io
import json
import logging
import sys
from unittest.mock import MagicMock, patch

from marinecompliance.observability.logging import (
    JSONFormatter,
    bind_correlation_id,
    correlation_id,
    get_correlation_id,
    setup_logging,
)
from marinecompliance.observability.tracing import annotate, init_tracking


def _record(msg="test message", name="marinecompliance.test", **extra):
    record = logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=None,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_json_formatter_output(self):
        parsed = json.loads(JSONFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "marinecompliance.test"
        assert parsed["message"] == "test message"
        assert parsed["service"] == "marinecompliance"
        assert "timestamp" in parsed
        assert "correlation_id" not in parsed

    def test_includes_correlation_id(self):
        with bind_correlation_id("req-123"):
            parsed = json.loads(JSONFormatter().format(_record()))
        assert parsed["correlation_id"] == "req-123"

    def test_extra_fields(self):
        record = _record(api_type="legacy", dedup_key="32.0_34.0_pier", duration_ms=12, unrelated="x")
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["api_type"] == "legacy"
        assert parsed["dedup_key"] == "32.0_34.0_pier"
        assert parsed["duration_ms"] == 12
        assert "unrelated" not in parsed

    def test_exception_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()
        parsed = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in parsed["exception"]


class TestCorrelationId:
    def test_default_empty(self):
        assert get_correlation_id() == ""

    def test_bind_generates_and_resets(self):
        with bind_correlation_id() as cid:
            assert cid
            assert get_correlation_id() == cid
        assert get_correlation_id() == ""

    def test_nested_binding_restores_outer(self):
        token = correlation_id.set("outer")
        try:
            with bind_correlation_id("inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"
        finally:
            correlation_id.reset(token)


class TestSetupLogging:
    def test_json_to_stream(self):
        stream = io.StringIO()
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(json_format=True, level="debug", stream=stream)
            logging.getLogger("marinecompliance.x").info("hello", extra={"api_type": "enhanced"})
            assert root.level == logging.DEBUG
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

        line = json.loads(stream.getvalue().strip())
        assert line["message"] == "hello"
        assert line["api_type"] == "enhanced"

    def test_unknown_level_falls_back_to_info(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging(json_format=False, level="chatty", stream=io.StringIO())
            assert root.level == logging.INFO
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestTracing:
    def test_annotate_sets_inputs_and_outputs(self):
        span = MagicMock()
        annotate(span, inputs={"lat": 1.0}, outputs={"rules": 2})
        span.set_inputs.assert_called_once_with({"lat": 1.0})
        span.set_outputs.assert_called_once_with({"rules": 2})

    def test_annotate_swallows_span_errors(self):
        span = MagicMock()
        span.set_inputs.side_effect = RuntimeError("no active trace")
        annotate(span, inputs={"lat": 1.0})

    def test_init_tracking_failure_returns_false(self):
        with patch(
            "marinecompliance.observability.tracing.set_tracking_uri",
            side_effect=RuntimeError("unreachable"),
        ):
            assert init_tracking("http://nowhere:5000", "exp") is False

    def test_init_tracking_success(self):
        with patch("marinecompliance.observability.tracing.set_tracking_uri") as uri, \
             patch("marinecompliance.observability.tracing.set_experiment") as exp, \
             patch("marinecompliance.observability.tracing.enable_async_logging"):
            assert init_tracking("sqlite:///x.db", "marine") is True
        uri.assert_called_once_with("sqlite:///x.db")
        exp.assert_called_once_with("marine")
