# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Standard response envelopes for Pulwave MCP tools.

Every dispatch returns a ``ToolResult`` so MCP clients always receive either
``{"ok": true, "data": ...}`` or ``{"ok": false, "error": {"kind", "message"}}``
rather than ad-hoc dicts or raw stack traces.

Usage::

    from pulwave_mcp.core.results import ToolResult, paginated_result

    return ToolResult.success({"id": "abc"})
    return ToolResult.failure(ErrorKind.NOT_FOUND, "Property not found: abc")
    return paginated_result(rows, count, page=1, page_size=20)
"""

from __future__ import annotations

import asyncio
import json
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ErrorKind, PulwaveMcpException


@dataclass(frozen=True)
class ToolError:
    """Structured error payload of a failed tool call."""

    kind: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"kind": str(self.kind), "message": self.message}
        if self.details:
            d["details"] = self.details
        return d


@dataclass(frozen=True)
class ToolResult:
    """Discriminated result of one tool invocation.

    Attributes:
        ok:    True when the handler completed and its input was valid.
        data:  Handler payload on success.
        error: ``ToolError`` on failure, None on success.
    """

    ok: bool
    data: Any = None
    error: ToolError | None = None

    @classmethod
    def success(cls, data: Any = None) -> ToolResult:
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, kind: ErrorKind | str, message: str, **details: Any) -> ToolResult:
        return cls(ok=False, error=ToolError(kind=ErrorKind(kind), message=message, details=details))

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the wire envelope.

        Success results always carry ``data`` (possibly None); failures carry
        ``error`` and never ``data``.
        """
        if self.ok:
            return {"ok": True, "data": to_jsonable(self.data)}
        if self.error is None:
            raise ValueError("A failed ToolResult must carry an error")
        return {"ok": False, "error": self.error.to_dict()}


@dataclass(frozen=True)
class PaginatedResult:
    """One page of a list query.

    ``count`` is the provider-reported total, or None when the provider cannot
    supply it cheaply. ``len(data)`` never exceeds ``page_size``.
    """

    data: list[Any]
    count: int | None
    page: int | None = None
    page_size: int | None = None

    def __post_init__(self):
        if self.page_size is not None and len(self.data) > self.page_size:
            raise ValueError(f"Page holds {len(self.data)} rows but page size is {self.page_size}")

    @property
    def total_pages(self) -> int | None:
        if self.count is None or not self.page_size:
            return None
        return max(1, math.ceil(self.count / self.page_size))

    @property
    def has_more(self) -> bool | None:
        if self.page is None or self.page_size is None:
            return None
        if self.count is None:
            return len(self.data) == self.page_size
        return self.page * self.page_size < self.count

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"data": to_jsonable(self.data), "count": self.count}
        if self.page is not None and self.page_size is not None:
            d["page"] = self.page
            d["pageSize"] = self.page_size
            d["totalPages"] = self.total_pages
            d["hasMore"] = self.has_more
        return d


def paginated_result(
    data: Sequence[Any] | None,
    count: int | None,
    page: int | None = None,
    page_size: int | None = None,
) -> PaginatedResult:
    """Shape list-query output into a ``PaginatedResult``."""
    return PaginatedResult(data=list(data or []), count=count, page=page, page_size=page_size)


def to_jsonable(value: Any) -> Any:
    """Convert envelopes and pydantic models to plain JSON-compatible values."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if hasattr(value, "to_dict") and callable(value.to_dict):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [to_jsonable(v) for v in value]
    return value


def format_output(value: Any) -> str:
    """Render a tool payload (or a whole envelope) as pretty JSON text."""
    return json.dumps(to_jsonable(value), indent=2, default=str)


def classify_error(exc: BaseException) -> ErrorKind:
    """Map an exception to its stable ``ErrorKind``."""
    if isinstance(exc, PulwaveMcpException):
        return exc.kind
    if isinstance(exc, PydanticValidationError):
        return ErrorKind.VALIDATION_ERROR
    if isinstance(exc, httpx.HTTPError):
        return ErrorKind.PROVIDER_ERROR
    if isinstance(exc, asyncio.TimeoutError | TimeoutError):
        return ErrorKind.TIMEOUT
    return ErrorKind.UNKNOWN


def format_error(error: BaseException | str, suggestion: str | None = None) -> ToolResult:
    """Build a failure ``ToolResult`` from an exception or a plain message."""
    details: dict[str, Any] = {}
    if isinstance(error, BaseException):
        kind = classify_error(error)
        if isinstance(error, PulwaveMcpException):
            message = error.message
            details.update(error.details)
        elif isinstance(error, PydanticValidationError):
            message = validation_message(error)
            details["errors"] = validation_errors(error)
        else:
            message = str(error) or error.__class__.__name__
    else:
        kind = ErrorKind.UNKNOWN
        message = error
    if suggestion:
        details["suggestion"] = suggestion
    return ToolResult(ok=False, error=ToolError(kind=kind, message=message, details=details))


def validation_errors(error: PydanticValidationError) -> list[dict[str, Any]]:
    """Compact, JSON-safe view of pydantic validation errors."""
    return [
        {
            "field": ".".join(str(part) for part in e["loc"]) or None,
            "message": e["msg"],
            "type": e["type"],
        }
        for e in error.errors()
    ]


def validation_message(error: PydanticValidationError) -> str:
    parts = []
    for e in validation_errors(error):
        parts.append(f"{e['field']}: {e['message']}" if e["field"] else e["message"])
    return "Invalid input: " + "; ".join(parts)
