# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Tool definition factory.

A tool is a name, a description, a pydantic input schema and a handler. The
handler receives the validated input model and the server's data provider:

    async def handler(params: GetProfileInput, provider: DataProvider) -> Any

Handlers may be plain functions or coroutines. ``with_error_handling`` turns
whatever they return or raise into a ``ToolResult``.

Example:
    get_profile = define_read_only_tool(
        name="get_profile",
        description="Get a user profile by ID.",
        input_schema=IdInput,
        handler=get_profile_handler,
    )
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from functools import wraps
from typing import Any

from mcp import types
from pydantic import BaseModel

from .exceptions import ErrorKind, ToolConfigurationError
from .results import ToolResult, format_error

logger = logging.getLogger(__name__)

TOOL_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_\-]{1,64}$")

Handler = Callable[[Any, Any], Any]
WrappedHandler = Callable[[Any, Any], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolAnnotations:
    """Behavioural hints advertised to MCP clients."""

    read_only: bool = False
    title: str | None = None
    destructive: bool | None = None
    idempotent: bool | None = None

    def to_mcp(self) -> types.ToolAnnotations:
        return types.ToolAnnotations(
            title=self.title,
            readOnlyHint=self.read_only,
            destructiveHint=self.destructive,
            idempotentHint=self.idempotent,
        )


@dataclass(frozen=True)
class ToolDescriptor:
    """Registered metadata and handler of one callable tool. Immutable."""

    name: str
    description: str
    input_schema: type[BaseModel]
    handler: Handler
    annotations: ToolAnnotations = field(default_factory=ToolAnnotations)

    @property
    def read_only(self) -> bool:
        return self.annotations.read_only

    def validate(self, arguments: dict[str, Any] | None) -> BaseModel:
        """Validate raw arguments against the input schema.

        Raises:
            pydantic.ValidationError: If the arguments do not match.
        """
        return self.input_schema.model_validate({} if arguments is None else arguments)

    def json_schema(self) -> dict[str, Any]:
        return self.input_schema.model_json_schema(by_alias=True)

    def to_mcp_tool(self) -> types.Tool:
        """Render this descriptor for ``tools/list``."""
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.json_schema(),
            annotations=self.annotations.to_mcp(),
        )


def define_tool(
    name: str,
    description: str,
    input_schema: type[BaseModel],
    handler: Handler,
    annotations: ToolAnnotations | None = None,
) -> ToolDescriptor:
    """Create a validated ``ToolDescriptor``.

    Raises:
        ToolConfigurationError: If the name is empty or malformed, the handler
            is not callable, or the schema is not a pydantic model class.
    """
    if not isinstance(name, str) or not name.strip():
        raise ToolConfigurationError("Tool name must be a non-empty string")
    if not TOOL_NAME_PATTERN.match(name):
        raise ToolConfigurationError(
            f"Invalid tool name '{name}': use letters, digits, '_' or '-' (max 64 chars)",
            tool_name=name,
        )
    if not callable(handler):
        raise ToolConfigurationError(f"Handler for tool '{name}' is not callable", tool_name=name)
    if not (isinstance(input_schema, type) and issubclass(input_schema, BaseModel)):
        raise ToolConfigurationError(
            f"Input schema for tool '{name}' must be a pydantic model class",
            tool_name=name,
        )

    return ToolDescriptor(
        name=name,
        description=description or "",
        input_schema=input_schema,
        handler=handler,
        annotations=annotations or ToolAnnotations(),
    )


def define_read_only_tool(
    name: str,
    description: str,
    input_schema: type[BaseModel],
    handler: Handler,
    annotations: ToolAnnotations | None = None,
) -> ToolDescriptor:
    """Define a tool that performs no mutating operation."""
    annotations = replace(annotations or ToolAnnotations(), read_only=True)
    return define_tool(name, description, input_schema, handler, annotations)


def define_write_tool(
    name: str,
    description: str,
    input_schema: type[BaseModel],
    handler: Handler,
    annotations: ToolAnnotations | None = None,
) -> ToolDescriptor:
    """Define a mutating tool; hidden when the server runs read-only."""
    annotations = replace(annotations or ToolAnnotations(), read_only=False)
    return define_tool(name, description, input_schema, handler, annotations)


def with_error_handling(handler: Handler) -> WrappedHandler:
    """Wrap a handler so it always resolves to a ``ToolResult``.

    A handler that already returns a ``ToolResult`` is passed through. Any
    exception becomes a failure with a stable kind. Cancellation propagates.
    """

    @wraps(handler)
    async def wrapper(params: Any, provider: Any) -> ToolResult:
        try:
            result = handler(params, provider)
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # Intentionally broad: converted into a ToolResult failure
            failure = format_error(exc)
            error = failure.error
            if error is None or error.kind is ErrorKind.UNKNOWN:
                logger.exception(f"Unexpected error in tool handler {getattr(handler, '__name__', handler)!r}")
            else:
                logger.warning(f"Tool handler failed ({error.kind}): {error.message}")
            return failure

        if isinstance(result, ToolResult):
            return result
        return ToolResult.success(result)

    return wrapper
