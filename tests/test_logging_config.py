"""Tests for logging configuration."""

import json
import logging
import sys

from spring_apps_provisioner.config import LoggingConfig
from spring_apps_provisioner.logging_config import (
    HTTP_LOGGING_POLICY_LOGGER,
    NETWORK_TRACE_LOGGER,
    JSONFormatter,
    TextFormatter,
    configure_logging,
)


class TestJSONFormatter:
    def test_formats_as_json(self):
        formatter = JSONFormatter()
        record = logging.LogRecord(
            name="test", level=logging.INFO, pathname="", lineno=0,
            msg="hello %s", args=("world",), exc_info=None,
        )
        output = formatter.format(record)
        parsed = json.loads(output)
        assert parsed["message"] == "hello world"
        assert parsed["level"] == "INFO"
        assert "timestamp" in parsed

    def test_includes_extra_fields(self):
        formatter = JSONFormatter()
        record = logging.LogRecord(
            name="test", level=logging.INFO, pathname="", lineno=0,
            msg="test", args=(), exc_info=None,
        )
        record.service = "demo-svc"  # type: ignore
        record.deployment = "default"  # type: ignore
        output = formatter.format(record)
        parsed = json.loads(output)
        assert parsed["service"] == "demo-svc"
        assert parsed["deployment"] == "default"
        assert "app" not in parsed

    def test_includes_exception(self):
        formatter = JSONFormatter()
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            exc_info = sys.exc_info()
        record = logging.LogRecord(
            name="test", level=logging.ERROR, pathname="", lineno=0,
            msg="failed", args=(), exc_info=exc_info,
        )
        parsed = json.loads(formatter.format(record))
        assert "RuntimeError: boom" in parsed["exception"]


class TestConfigureLogging:
    def test_json_format(self):
        configure_logging(LoggingConfig(level="DEBUG", format="json"))
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert any(isinstance(h.formatter, JSONFormatter) for h in root.handlers)

    def test_text_format(self):
        configure_logging(LoggingConfig(level="WARNING", format="text"))
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert any(isinstance(h.formatter, TextFormatter) for h in root.handlers)

    def test_suppresses_noisy_loggers(self):
        configure_logging(LoggingConfig())
        assert logging.getLogger("azure").level >= logging.WARNING
        assert logging.getLogger("urllib3").level >= logging.WARNING

    def test_http_logging_enabled_at_debug(self):
        configure_logging(LoggingConfig(level="DEBUG"), http_logging=True)
        assert logging.getLogger(HTTP_LOGGING_POLICY_LOGGER).level == logging.DEBUG

    def test_http_logging_quiet_at_info(self):
        configure_logging(LoggingConfig(level="INFO"), http_logging=True)
        assert logging.getLogger(HTTP_LOGGING_POLICY_LOGGER).level == logging.WARNING

    def test_network_trace_enabled_at_debug(self):
        configure_logging(LoggingConfig(level="DEBUG"), http_logging=True)
        assert logging.getLogger(NETWORK_TRACE_LOGGER).level == logging.DEBUG

    def test_network_trace_quiet_when_disabled(self):
        configure_logging(LoggingConfig(level="DEBUG"), http_logging=False)
        assert logging.getLogger(NETWORK_TRACE_LOGGER).level == logging.WARNING
        assert logging.getLogger(HTTP_LOGGING_POLICY_LOGGER).level == logging.WARNING
