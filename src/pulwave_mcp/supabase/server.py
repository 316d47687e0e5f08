# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Supabase MCP server: profiles, translations, properties, admin and schema tools."""

from __future__ import annotations

import httpx

from ..core.config import McpServerConfig, SupabaseConfig
from ..core.server import BaseMcpServer
from .provider import SupabaseProvider
from .tools import create_all_tools


class SupabaseMcpServer(BaseMcpServer):
    """MCP server exposing read-only Supabase queries."""

    provider: SupabaseProvider

    def __init__(
        self,
        config: McpServerConfig,
        supabase: SupabaseConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(config, provider=SupabaseProvider(supabase, transport=transport))

    def register_tools(self) -> None:
        for tool in create_all_tools():
            self.register_tool(tool)
