# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Command-line entry point for the Supabase MCP server.

Usage:
    pulwave-mcp-supabase                 # serve MCP over stdio
    pulwave-mcp-supabase --health-check  # validate env + connectivity, exit 0/1
    pulwave-mcp-supabase --list-tools    # print registered tools as JSON

Environment:
    SUPABASE_URL, SUPABASE_ANON_KEY (required), SUPABASE_SERVICE_ROLE_KEY (optional)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import math
import signal
import sys
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from . import __version__
from .core.config import McpServerConfig, McpServerSettings, get_config
from .core.exceptions import PulwaveMcpException
from .core.logging import configure_logging
from .core.server import BaseMcpServer
from .supabase import SupabaseMcpServer, SupabaseProvider, create_all_tools

logger = logging.getLogger(__name__)


def non_negative_seconds(value: str) -> float:
    """argparse type for a timeout in seconds; 0 disables the budget."""
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if math.isnan(seconds) or seconds < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or more seconds, got {value}")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pulwave-mcp-supabase",
        description="Pulwave Supabase MCP server (stdio)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--health-check", action="store_true", help="Check configuration and connectivity, then exit")
    parser.add_argument("--list-tools", action="store_true", help="Print the registered tools as JSON and exit")
    parser.add_argument("--allow-writes", action="store_true", help="Register mutating tools (disables read-only mode)")
    parser.add_argument(
        "--timeout", type=non_negative_seconds, default=None, help="Per-call tool timeout in seconds (0 disables)"
    )
    parser.add_argument("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    return parser


def server_config_from(settings: McpServerSettings, args: argparse.Namespace) -> McpServerConfig:
    """Apply CLI overrides on top of environment settings."""
    config = settings.server_config()
    timeout = config.tool_timeout if args.timeout is None else (args.timeout or None)
    return McpServerConfig(
        name=config.name,
        version=config.version,
        read_only=config.read_only and not args.allow_writes,
        tool_timeout=timeout,
    )


def describe_tools(config: McpServerConfig) -> list[dict[str, Any]]:
    tools = [t for t in create_all_tools() if t.read_only or not config.read_only]
    return [
        {
            "name": t.name,
            "description": t.description,
            "readOnly": t.read_only,
            "inputSchema": t.json_schema(),
        }
        for t in tools
    ]


async def health_check(settings: McpServerSettings) -> int:
    """Connect to Supabase and probe it. Returns a process exit code."""
    status: dict[str, Any] = {"healthy": False, "provider": "supabase"}
    provider = SupabaseProvider(settings.supabase_config())
    try:
        await provider.connect()
        status["admin_client"] = provider.has_admin
        status["connected"] = await provider.is_connected()
    finally:
        await provider.disconnect()

    status["healthy"] = status["connected"]
    print(json.dumps(status, indent=2))
    return 0 if status["healthy"] else 1


async def serve(server: BaseMcpServer) -> int:
    """Start the server, serve stdio until EOF or SIGINT/SIGTERM, then stop."""
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def handle_signal() -> None:
        logger.info("Received shutdown signal")
        stop_event.set()

    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, handle_signal)
            installed.append(sig)
        except NotImplementedError:
            logger.debug(f"Signal handlers not supported for {sig!r} on this platform")

    try:
        await server.start()

        serve_task = asyncio.create_task(server.serve_stdio())
        stop_task = asyncio.create_task(stop_event.wait())
        done, pending = await asyncio.wait({serve_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        if serve_task in done:
            serve_task.result()
    finally:
        await server.stop()
        for sig in installed:
            loop.remove_signal_handler(sig)

    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the Supabase MCP server."""
    args = build_parser().parse_args(argv)

    try:
        settings = get_config()
        configure_logging(level=args.log_level)
        config = server_config_from(settings, args)

        if args.list_tools:
            print(json.dumps(describe_tools(config), indent=2))
            return 0

        if args.health_check:
            return asyncio.run(health_check(settings))

        logger.info(f"{config.name} MCP server starting...")
        server = SupabaseMcpServer(config, settings.supabase_config())
        return asyncio.run(serve(server))

    except PulwaveMcpException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except PydanticValidationError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
