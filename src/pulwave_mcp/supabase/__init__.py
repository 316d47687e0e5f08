# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Supabase-backed MCP server."""

from .provider import QueryResponse, SupabaseProvider, TableQuery
from .server import SupabaseMcpServer
from .tools import create_all_tools

__all__ = ["QueryResponse", "SupabaseMcpServer", "SupabaseProvider", "TableQuery", "create_all_tools"]
