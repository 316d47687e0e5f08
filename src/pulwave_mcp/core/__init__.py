# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Domain-agnostic MCP tool core: definitions, envelopes, registry and dispatch."""

from .config import McpServerConfig, McpServerSettings, SupabaseConfig, clear_config_cache, get_config
from .exceptions import (
    ConfigException,
    DuplicateToolError,
    ErrorKind,
    NotFoundError,
    NotRunningError,
    ProviderException,
    PulwaveMcpException,
    ServerStateError,
    ToolConfigurationError,
    ToolTimeoutError,
    ValidationException,
)
from .provider import DataProvider, Pagination, ensure_read_only_sql
from .results import (
    PaginatedResult,
    ToolError,
    ToolResult,
    classify_error,
    format_error,
    format_output,
    paginated_result,
)
from .server import BaseMcpServer, ServerState, create_mcp_server
from .tool import (
    ToolAnnotations,
    ToolDescriptor,
    define_read_only_tool,
    define_tool,
    define_write_tool,
    with_error_handling,
)

__all__ = [
    "BaseMcpServer",
    "ConfigException",
    "DataProvider",
    "DuplicateToolError",
    "ErrorKind",
    "McpServerConfig",
    "McpServerSettings",
    "NotFoundError",
    "NotRunningError",
    "PaginatedResult",
    "Pagination",
    "ProviderException",
    "PulwaveMcpException",
    "ServerState",
    "ServerStateError",
    "SupabaseConfig",
    "ToolAnnotations",
    "ToolConfigurationError",
    "ToolDescriptor",
    "ToolError",
    "ToolResult",
    "ToolTimeoutError",
    "ValidationException",
    "classify_error",
    "clear_config_cache",
    "create_mcp_server",
    "define_read_only_tool",
    "define_tool",
    "define_write_tool",
    "ensure_read_only_sql",
    "format_error",
    "format_output",
    "get_config",
    "paginated_result",
    "with_error_handling",
]
