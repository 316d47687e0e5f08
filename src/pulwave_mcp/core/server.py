# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Base MCP server: tool registry, dispatch and lifecycle.

Lifecycle is one-directional: CREATED -> STARTED -> STOPPED. Tools are
registered before start and the registry is read-only afterwards, so
concurrent dispatches need no locking.

Example:
    class MyServer(BaseMcpServer):
        def register_tools(self) -> None:
            self.register_tool(get_profile)

    async with MyServer(McpServerConfig(name="my-server"), provider) as server:
        result = await server.dispatch("get_profile", {"id": "..."})
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from contextlib import AsyncExitStack
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from pydantic import ValidationError as PydanticValidationError

from .config import McpServerConfig
from .exceptions import (
    DuplicateToolError,
    ErrorKind,
    NotRunningError,
    ProviderException,
    PulwaveMcpException,
    ServerStateError,
    ToolTimeoutError,
)
from .logging import correlation_context, tool_logger
from .provider import DataProvider
from .results import ToolResult, format_error, format_output
from .tool import ToolDescriptor, WrappedHandler, with_error_handling

logger = logging.getLogger(__name__)


class ServerState(StrEnum):
    CREATED = "created"
    STARTED = "started"
    STOPPED = "stopped"


class BaseMcpServer:
    """MCP server owning a name-keyed tool registry and a data provider.

    Subclasses override ``register_tools()``; ``create_mcp_server()`` builds
    a server from a flat list of descriptors instead.
    """

    def __init__(
        self,
        config: McpServerConfig,
        provider: DataProvider | None = None,
        tools: Iterable[ToolDescriptor] = (),
    ):
        self.config = config
        self.provider = provider
        self.state = ServerState.CREATED
        self._initial_tools = list(tools)
        self._tools: dict[str, ToolDescriptor] = {}
        self._handlers: dict[str, WrappedHandler] = {}
        self._skipped: set[str] = set()
        self._registered = False
        self._exit_stack: AsyncExitStack | None = None
        self._session: asyncio.Task[None] | None = None
        self.server = Server(config.name, version=config.version)
        self._setup_handlers()

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register_tools(self) -> None:
        """Register this server's tools. Called once, before start."""
        for tool in self._initial_tools:
            self.register_tool(tool)

    def register_tool(self, descriptor: ToolDescriptor) -> bool:
        """Add a tool to the registry.

        Returns:
            False if the tool was skipped because it mutates data and the
            server runs read-only, True otherwise.

        Raises:
            DuplicateToolError: If the name is already registered.
            ServerStateError: If the server has already started.
        """
        if self.state is not ServerState.CREATED:
            raise ServerStateError(f"Cannot register tool '{descriptor.name}' after start", self.state)
        if descriptor.name in self._tools or descriptor.name in self._skipped:
            raise DuplicateToolError(descriptor.name)

        if self.config.read_only and not descriptor.read_only:
            logger.warning(f"Read-only mode: skipping mutating tool {descriptor.name}")
            self._skipped.add(descriptor.name)
            return False

        self._tools[descriptor.name] = descriptor
        self._handlers[descriptor.name] = with_error_handling(descriptor.handler)
        logger.debug(f"Registered tool {descriptor.name}")
        return True

    def _ensure_registered(self) -> None:
        if self._registered:
            return
        try:
            self.register_tools()
        except Exception:
            # A half-built registry is never served
            self._tools.clear()
            self._handlers.clear()
            self._skipped.clear()
            raise
        self._registered = True

    @property
    def tools(self) -> Mapping[str, ToolDescriptor]:
        """Read-only view of the registry."""
        self._ensure_registered()
        return MappingProxyType(self._tools)

    def get_tool(self, name: str) -> ToolDescriptor | None:
        return self.tools.get(name)

    def list_tools(self) -> list[types.Tool]:
        """MCP ``tools/list`` payload."""
        return [tool.to_mcp_tool() for tool in self.tools.values()]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(
        self,
        tool_name: str,
        arguments: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> ToolResult:
        """Validate and run one tool call.

        Never raises for a bad request: every failure comes back as a
        ``ToolResult`` with a stable error kind.

        Args:
            tool_name: Registered tool name
            arguments: Raw tool arguments
            timeout: Seconds before the call fails with TIMEOUT. None uses
                ``config.tool_timeout``; 0 disables the budget.
        """
        if self.state is not ServerState.STARTED:
            return format_error(NotRunningError(self.state))

        tool = self._tools.get(tool_name)
        if tool is None:
            return ToolResult.failure(
                ErrorKind.UNKNOWN_TOOL,
                f"Unknown tool: {tool_name}",
                suggestion="Use tools/list to see available tools.",
            )

        with correlation_context():
            tool_logger.log_call(tool_name, arguments if isinstance(arguments, dict) else {"input": arguments})
            started = time.perf_counter()
            result = await self._invoke(tool, arguments, timeout)
            tool_logger.log_result(
                tool_name,
                result.ok,
                duration_ms=(time.perf_counter() - started) * 1000,
                error_kind=None if result.error is None else str(result.error.kind),
            )
        return result

    async def _invoke(self, tool: ToolDescriptor, arguments: Any, timeout: float | None) -> ToolResult:
        # Validation happens before the handler is ever called
        try:
            params = tool.validate(arguments)
        except PydanticValidationError as exc:
            return format_error(exc)

        handler = self._handlers[tool.name]
        budget = self.config.tool_timeout if timeout is None else timeout
        if not budget:
            return await handler(params, self.provider)

        try:
            return await asyncio.wait_for(handler(params, self.provider), budget)
        except TimeoutError:
            # The provider call may still finish in the background
            logger.warning(f"Tool {tool.name} exceeded its {budget:g}s budget")
            return format_error(ToolTimeoutError(tool.name, budget))

    async def handle_request(self, request: Any) -> dict[str, Any]:
        """Handle a ``{"toolName": ..., "input": {...}}`` request.

        Returns:
            ``{"ok": true, "data": ...}`` or ``{"ok": false, "error": {...}}``
        """
        if not isinstance(request, dict) or not isinstance(request.get("toolName"), str):
            return ToolResult.failure(
                ErrorKind.VALIDATION_ERROR, "Request must be an object with a string 'toolName'"
            ).to_dict()

        arguments = request.get("input")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            return ToolResult.failure(ErrorKind.VALIDATION_ERROR, "'input' must be an object").to_dict()

        result = await self.dispatch(request["toolName"], arguments)
        return result.to_dict()

    # ------------------------------------------------------------------
    # MCP protocol wiring
    # ------------------------------------------------------------------

    def _setup_handlers(self) -> None:
        """Set up MCP server handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[types.Tool]:
            return self.list_tools()

        # Argument validation is ours, so clients get VALIDATION_ERROR envelopes
        @self.server.call_tool(validate_input=False)
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
            result = await self.dispatch(name, arguments)
            return [types.TextContent(type="text", text=format_output(result))]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Register tools and open the provider.

        A second call while started is a no-op; a stopped server cannot be
        restarted. On failure every resource opened so far is released and
        the server ends up STOPPED.

        Raises:
            ServerStateError: If the server was already stopped.
            DuplicateToolError: If registration fails; the server is then STOPPED.
            PulwaveMcpException: If the provider cannot be opened.
        """
        if self.state is ServerState.STARTED:
            logger.debug(f"{self.config.name} already started")
            return
        if self.state is ServerState.STOPPED:
            raise ServerStateError("Server was stopped and cannot be restarted", self.state)

        try:
            self._ensure_registered()
        except Exception:
            self.state = ServerState.STOPPED
            raise

        stack = AsyncExitStack()
        self._exit_stack = stack
        try:
            await self.open_resources(stack)
        except BaseException as exc:
            self.state = ServerState.STOPPED
            self._exit_stack = None
            await stack.aclose()
            if isinstance(exc, Exception) and not isinstance(exc, PulwaveMcpException):
                provider_name = getattr(self.provider, "name", None)
                raise ProviderException(f"Failed to start {self.config.name}: {exc}", provider=provider_name) from exc
            raise

        self.state = ServerState.STARTED
        logger.info(f"{self.config.name} v{self.config.version} started with {len(self._tools)} tools")

    async def open_resources(self, stack: AsyncExitStack) -> None:
        """Acquire resources, registering each release on ``stack``."""
        if self.provider is not None:
            # Release is registered first so a half-open connect is still closed
            stack.push_async_callback(self.provider.disconnect)
            await self.provider.connect()
            logger.info(f"Provider {self.provider.name} connected")

    async def stop(self) -> None:
        """Release everything ``start()`` acquired, including a running stdio session.

        Safe to call repeatedly.
        """
        stack, self._exit_stack = self._exit_stack, None
        previous, self.state = self.state, ServerState.STOPPED
        if stack is None:
            return
        try:
            await stack.aclose()
        except Exception:
            logger.exception(f"Error while stopping {self.config.name}")
        if previous is ServerState.STARTED:
            logger.info(f"{self.config.name} stopped")

    async def __aenter__(self) -> BaseMcpServer:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def serve_stdio(self) -> None:
        """Serve MCP over stdio until the client closes the stream or ``stop()`` runs.

        The session belongs to the server: ``stop()`` cancels it, and only one
        session may read stdin at a time.

        Raises:
            NotRunningError: If the server is not started.
            ServerStateError: If a stdio session is already being served.
        """
        if self.state is not ServerState.STARTED or self._exit_stack is None:
            raise NotRunningError(self.state)
        if self._session is not None:
            raise ServerStateError("A stdio session is already being served", self.state)

        session = asyncio.create_task(self._run_stdio_session())
        self._session = session
        self._exit_stack.push_async_callback(self._close_session, session)
        try:
            await session
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            logger.info(f"{self.config.name} stdio session closed by stop()")
        finally:
            if self._session is session:
                self._session = None

    async def _run_stdio_session(self) -> None:
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(read_stream, write_stream, self.server.create_initialization_options())

    async def _close_session(self, session: asyncio.Task[None]) -> None:
        if not session.done():
            session.cancel()
            await asyncio.wait({session})

    async def run_stdio(self) -> None:
        """Start, serve stdio, and always stop."""
        async with self:
            await self.serve_stdio()


def create_mcp_server(
    config: McpServerConfig,
    tools: Iterable[ToolDescriptor],
    provider: DataProvider | None = None,
) -> BaseMcpServer:
    """Create a server from a flat list of tool definitions."""
    return BaseMcpServer(config, provider=provider, tools=tools)
