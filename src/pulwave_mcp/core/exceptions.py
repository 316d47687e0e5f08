# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Exception hierarchy and error-kind taxonomy for Pulwave MCP servers.

Every exception carries a stable ``kind`` so the dispatch boundary can turn it
into a structured ``ToolResult`` failure that MCP clients can branch on.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Stable error kinds surfaced to MCP clients."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN_TOOL = "UNKNOWN_TOOL"
    DUPLICATE_TOOL = "DUPLICATE_TOOL"
    NOT_RUNNING = "NOT_RUNNING"
    NOT_FOUND = "NOT_FOUND"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    TIMEOUT = "TIMEOUT"
    UNKNOWN = "UNKNOWN"


class PulwaveMcpException(Exception):
    """Base exception for all Pulwave MCP errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "kind": str(self.kind),
            "message": self.message,
            "details": self.details,
        }


class ConfigException(PulwaveMcpException):
    """Exception for configuration errors.

    Raised when:
    - Required environment variables are missing
    - Server configuration is incomplete
    """

    kind = ErrorKind.CONFIGURATION_ERROR

    def __init__(self, message: str, missing_vars: list[str] | None = None):
        details = {}
        if missing_vars:
            details["missing_vars"] = missing_vars
        super().__init__(message, details)
        self.missing_vars = missing_vars or []


class ToolConfigurationError(PulwaveMcpException):
    """Raised when a tool definition is malformed (empty name, bad handler...)."""

    kind = ErrorKind.CONFIGURATION_ERROR

    def __init__(self, message: str, tool_name: str | None = None):
        details = {}
        if tool_name:
            details["tool_name"] = tool_name
        super().__init__(message, details)
        self.tool_name = tool_name


class ValidationException(PulwaveMcpException):
    """Exception for input validation errors.

    Raised when:
    - Tool arguments fail their input schema
    - A handler rejects an argument combination
    """

    kind = ErrorKind.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        errors: list[dict[str, Any]] | None = None,
    ):
        details: dict[str, Any] = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        if errors:
            details["errors"] = errors
        super().__init__(message, details)
        self.field = field
        self.value = value
        self.errors = errors or []


class NotFoundError(PulwaveMcpException):
    """Exception for resource not found errors."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource_type: str, resource_id: str):
        message = f"{resource_type} not found: {resource_id}"
        details = {
            "resource_type": resource_type,
            "resource_id": resource_id,
        }
        super().__init__(message, details)
        self.resource_type = resource_type
        self.resource_id = resource_id


class ProviderException(PulwaveMcpException):
    """Exception for data provider failures.

    Raised when:
    - The provider cannot connect
    - A query or RPC call returns an error
    """

    kind = ErrorKind.PROVIDER_ERROR

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        code: str | None = None,
        status_code: int | None = None,
    ):
        details: dict[str, Any] = {}
        if provider:
            details["provider"] = provider
        if code:
            details["code"] = code
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.provider = provider
        self.code = code
        self.status_code = status_code


class DuplicateToolError(PulwaveMcpException):
    """Raised when a tool name is registered twice on one server."""

    kind = ErrorKind.DUPLICATE_TOOL

    def __init__(self, tool_name: str):
        super().__init__(f"Tool already registered: {tool_name}", {"tool_name": tool_name})
        self.tool_name = tool_name


class NotRunningError(PulwaveMcpException):
    """Raised when a server is used outside of the STARTED state."""

    kind = ErrorKind.NOT_RUNNING

    def __init__(self, state: str):
        super().__init__(f"Server is not running (state: {state})", {"state": state})
        self.state = state


class ServerStateError(PulwaveMcpException):
    """Raised on an invalid lifecycle transition (restart, late registration)."""

    kind = ErrorKind.CONFIGURATION_ERROR

    def __init__(self, message: str, state: str):
        super().__init__(message, {"state": state})
        self.state = state


class ToolTimeoutError(PulwaveMcpException):
    """Raised when a tool handler exceeds its time budget."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, tool_name: str, timeout: float):
        super().__init__(
            f"Tool {tool_name} timed out after {timeout:g}s",
            {"tool_name": tool_name, "timeout": timeout},
        )
        self.tool_name = tool_name
        self.timeout = timeout
