# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Logging setup for Pulwave MCP servers.

stdout carries the MCP stdio stream, so every handler installed here writes
to stderr (or a file). Two formats are available:

- JSON lines, the default when stderr is not a terminal
- a compact colored line for interactive use

Each dispatched tool call runs inside ``correlation_context()``; both formats
tag log lines with the active call id so one call's lines can be grouped.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "mcp")

SENSITIVE_KEYS = frozenset(
    {
        "password",
        "secret",
        "token",
        "api_key",
        "apikey",
        "anon_key",
        "service_role",
        "auth",
        "credential",
    }
)
MAX_VALUE_LENGTH = 500

_call_id: ContextVar[str | None] = ContextVar("pulwave_mcp_call_id", default=None)


def get_correlation_id() -> str | None:
    """Id of the tool call being handled in this context, if any."""
    return _call_id.get()


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a call id for the duration of the block.

    Example:
        with correlation_context() as cid:
            logger.info("Dispatching get_profile")  # tagged with cid
    """
    token = _call_id.set(correlation_id or str(uuid.uuid4()))
    try:
        yield _call_id.get()
    finally:
        _call_id.reset(token)


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        cid = get_correlation_id()
        if cid:
            entry["correlation_id"] = cid
        if record.levelno >= logging.WARNING:
            entry["source"] = {"file": record.pathname, "line": record.lineno, "function": record.funcName}
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        extra = getattr(record, "extra_data", None)
        if extra is not None:
            entry["extra"] = extra
        return json.dumps(entry, default=str)


class StandardFormatter(logging.Formatter):
    """``12:00:01 INFO     pulwave_mcp.core.server: [1a2b3c4d] message``"""

    LEVEL_COLORS = {
        logging.DEBUG: "36",
        logging.INFO: "32",
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "35",
    }
    CALL_ID_COLOR = "90"

    def __init__(self, use_colors: bool = True):
        super().__init__(fmt="%(asctime)s %(levelname)-8s %(name)s: %(call_tag)s%(message)s", datefmt="%H:%M:%S")
        self.use_colors = use_colors and sys.stderr.isatty()

    def _paint(self, text: str, color: str) -> str:
        return f"\033[{color}m{text}\033[0m" if self.use_colors else text

    def formatMessage(self, record: logging.LogRecord) -> str:
        # Render from a copy; other handlers share this record
        fields = dict(record.__dict__)
        cid = get_correlation_id()
        fields["call_tag"] = self._paint(f"[{cid[:8]}]", self.CALL_ID_COLOR) + " " if cid else ""
        if self.use_colors:
            fields["levelname"] = self._paint(record.levelname, self.LEVEL_COLORS.get(record.levelno, "0"))
        return self._style.format(logging.makeLogRecord(fields))


def _use_json(log_format: str) -> bool:
    choice = log_format.strip().lower()
    if choice in ("json", "text"):
        return choice == "json"
    return not sys.stderr.isatty()


def configure_logging(
    level: str | int | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Replace the root logger's handlers with Pulwave MCP ones.

    Unset arguments fall back to PULWAVE_MCP_LOG_LEVEL, PULWAVE_MCP_LOG_FORMAT
    (``json``, ``text`` or empty for auto-detect) and PULWAVE_MCP_LOG_FILE.
    A log file always receives JSON lines.
    """
    from .config import get_config

    settings = get_config()
    level = settings.log_level if level is None else level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    if json_format is None:
        json_format = _use_json(settings.log_format)
    if log_file is None:
        log_file = settings.log_file

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(JSONFormatter() if json_format else StandardFormatter())
    handlers: list[logging.Handler] = [console]
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def redact(value: Any) -> Any:
    """Copy of ``value`` with secret-looking keys masked and long strings cut."""
    if isinstance(value, dict):
        return {
            key: "[REDACTED]" if any(word in str(key).lower() for word in SENSITIVE_KEYS) else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list | tuple):
        return [redact(item) for item in value]
    if isinstance(value, str) and len(value) > MAX_VALUE_LENGTH:
        return value[:MAX_VALUE_LENGTH] + "..."
    return value


class ToolCallLogger:
    """Logs each dispatched tool call and its outcome with redacted arguments."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("pulwave_mcp.tools")

    def log_call(self, tool_name: str, arguments: dict[str, Any], level: int = logging.DEBUG) -> None:
        self.logger.log(
            level,
            f"Calling tool {tool_name}",
            extra={"extra_data": {"tool": tool_name, "arguments": redact(arguments)}},
        )

    def log_result(
        self,
        tool_name: str,
        success: bool,
        duration_ms: float | None = None,
        error_kind: str | None = None,
        level: int = logging.DEBUG,
    ) -> None:
        """Log the outcome of a call.

        Args:
            tool_name: Name of the tool
            success: Whether the call returned an ok envelope
            duration_ms: Wall time of the call in milliseconds
            error_kind: ``ErrorKind`` of a failed call
            level: Log level
        """
        outcome = "succeeded" if success else f"failed with {error_kind or 'UNKNOWN'}"
        timing = "" if duration_ms is None else f" in {duration_ms:.1f}ms"
        self.logger.log(
            level,
            f"Tool {tool_name} {outcome}{timing}",
            extra={
                "extra_data": {
                    "tool": tool_name,
                    "success": success,
                    "error_kind": error_kind,
                    "duration_ms": duration_ms,
                }
            },
        )


tool_logger = ToolCallLogger()
