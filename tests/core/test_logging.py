"""Tests for pulwave_mcp.core.logging."""

from __future__ import annotations

import json
import logging

import pytest

from pulwave_mcp.core.logging import (
    JSONFormatter,
    StandardFormatter,
    ToolCallLogger,
    configure_logging,
    correlation_context,
    get_correlation_id,
    redact,
)


def make_record(message: str = "hello", level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("pulwave_mcp.test", level, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestCorrelationContext:
    def test_generates_and_resets(self):
        assert get_correlation_id() is None
        with correlation_context() as cid:
            assert get_correlation_id() == cid
            assert len(cid) == 36
        assert get_correlation_id() is None

    def test_explicit_id_and_nesting(self):
        with correlation_context("outer"):
            with correlation_context("inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"


class TestFormatters:
    def test_json_formatter(self):
        with correlation_context("cid-1"):
            line = JSONFormatter().format(make_record(extra_data={"tool": "get_profile"}))

        data = json.loads(line)
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["correlation_id"] == "cid-1"
        assert data["extra"] == {"tool": "get_profile"}
        assert "source" not in data

    def test_json_formatter_includes_source_for_warnings(self):
        data = json.loads(JSONFormatter().format(make_record(level=logging.WARNING)))
        assert data["source"]["line"] == 10

    def test_standard_formatter_prefixes_correlation_id(self):
        formatter = StandardFormatter(use_colors=False)
        record = make_record()
        with correlation_context("abcdef123456"):
            line = formatter.format(record)

        assert "[abcdef12] hello" in line
        assert record.msg == "hello"


class TestConfigureLogging:
    def test_json_to_stderr(self, clean_env, restore_root_logger):
        configure_logging(level="DEBUG", json_format=True)

        root = restore_root_logger
        assert root.level == logging.DEBUG
        [handler] = root.handlers
        assert isinstance(handler.formatter, JSONFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_environment_level_and_format(self, clean_env, monkeypatch, restore_root_logger):
        monkeypatch.setenv("PULWAVE_MCP_LOG_LEVEL", "warning")
        monkeypatch.setenv("PULWAVE_MCP_LOG_FORMAT", "text")

        configure_logging()

        root = restore_root_logger
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, StandardFormatter)

    def test_log_file_uses_json(self, clean_env, tmp_path, restore_root_logger):
        log_file = tmp_path / "mcp.log"
        configure_logging(level="INFO", json_format=False, log_file=str(log_file))

        file_handlers = [h for h in restore_root_logger.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert isinstance(file_handlers[0].formatter, JSONFormatter)
        file_handlers[0].close()


class TestRedact:
    def test_masks_sensitive_keys(self):
        sanitized = redact(
            {"id": "abc", "apiKey": "k", "nested": {"service_role_key": "s"}, "items": [{"password": "p"}]}
        )
        assert sanitized == {
            "id": "abc",
            "apiKey": "[REDACTED]",
            "nested": {"service_role_key": "[REDACTED]"},
            "items": [{"password": "[REDACTED]"}],
        }

    def test_truncates_long_strings(self):
        sanitized = redact({"sql": "x" * 600})
        assert sanitized["sql"] == "x" * 500 + "..."

    def test_leaves_input_untouched(self):
        arguments = {"token": "t"}
        redact(arguments)
        assert arguments == {"token": "t"}


class TestToolCallLogger:
    def test_log_call_and_result(self, caplog):
        tool_logger = ToolCallLogger(logging.getLogger("pulwave_mcp.tools.test"))

        with caplog.at_level(logging.DEBUG, logger="pulwave_mcp.tools.test"):
            tool_logger.log_call("get_profile", {"id": "abc", "token": "t"})
            tool_logger.log_result("get_profile", False, duration_ms=1.3, error_kind="NOT_FOUND")

        call, result = caplog.records
        assert call.getMessage() == "Calling tool get_profile"
        assert call.extra_data["arguments"] == {"id": "abc", "token": "[REDACTED]"}
        assert result.getMessage() == "Tool get_profile failed with NOT_FOUND in 1.3ms"
        assert result.extra_data["error_kind"] == "NOT_FOUND"

    def test_success_without_timing(self, caplog):
        tool_logger = ToolCallLogger(logging.getLogger("pulwave_mcp.tools.test"))

        with caplog.at_level(logging.DEBUG, logger="pulwave_mcp.tools.test"):
            tool_logger.log_result("ping", True)

        assert caplog.records[0].getMessage() == "Tool ping succeeded"
