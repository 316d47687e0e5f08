"""Tests for the pulwave-mcp-supabase command line."""

from __future__ import annotations

import asyncio
import json
import signal
from unittest.mock import MagicMock

import httpx
import pytest

from pulwave_mcp import cli
from pulwave_mcp.core.config import McpServerConfig, McpServerSettings
from pulwave_mcp.core.server import BaseMcpServer, ServerState
from pulwave_mcp.supabase import SupabaseProvider

from .conftest import FakeProvider


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    """Keep main() from replacing pytest's log handlers."""
    monkeypatch.setattr(cli, "configure_logging", MagicMock())


class StdioStub(BaseMcpServer):
    """Server whose stdio session is replaced by a scripted coroutine."""

    def __init__(self, session, provider=None):
        super().__init__(McpServerConfig(name="stub"), provider=provider)
        self.session = session

    async def serve_stdio(self) -> None:
        await self.session()


class TestServerConfigFrom:
    def test_cli_overrides(self, clean_env):
        args = cli.build_parser().parse_args(["--allow-writes", "--timeout", "0"])
        config = cli.server_config_from(McpServerSettings(), args)
        assert config.read_only is False
        assert config.tool_timeout is None

    @pytest.mark.parametrize("value", ["-5", "-0.1", "nan", "soon"])
    def test_timeout_must_be_non_negative(self, value, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.build_parser().parse_args(["--timeout", value])

        assert exc_info.value.code == 2
        assert "--timeout" in capsys.readouterr().err

    def test_environment_defaults(self, clean_env):
        args = cli.build_parser().parse_args([])
        config = cli.server_config_from(McpServerSettings(), args)
        assert config.read_only is True
        assert config.tool_timeout == 30.0

    def test_environment_can_disable_read_only(self, clean_env, monkeypatch):
        monkeypatch.setenv("PULWAVE_MCP_READ_ONLY", "false")
        args = cli.build_parser().parse_args(["--timeout", "2.5"])
        config = cli.server_config_from(McpServerSettings(), args)
        assert config.read_only is False
        assert config.tool_timeout == 2.5


class TestMain:
    def test_list_tools(self, clean_env, capsys):
        assert cli.main(["--list-tools"]) == 0

        tools = json.loads(capsys.readouterr().out)
        assert len(tools) == 21
        get_profile = next(t for t in tools if t["name"] == "get_profile")
        assert get_profile["readOnly"] is True
        assert get_profile["inputSchema"]["required"] == ["id"]

    def test_missing_configuration(self, clean_env, capsys):
        assert cli.main([]) == 1

        err = capsys.readouterr().err
        assert err.startswith("Error: Missing required environment variables")
        assert "SUPABASE_URL" in err

    def test_health_check_missing_configuration(self, clean_env, capsys):
        assert cli.main(["--health-check"]) == 1
        assert "SUPABASE_ANON_KEY" in capsys.readouterr().err

    def test_invalid_settings(self, clean_env, monkeypatch, capsys):
        monkeypatch.setenv("PULWAVE_MCP_TOOL_TIMEOUT", "soon")
        assert cli.main(["--list-tools"]) == 1
        assert "invalid configuration" in capsys.readouterr().err

    def test_log_level_forwarded(self, clean_env):
        cli.main(["--list-tools", "--log-level", "DEBUG"])
        cli.configure_logging.assert_called_once_with(level="DEBUG")

    def test_unwritable_log_file(self, clean_env, capsys):
        cli.configure_logging.side_effect = PermissionError(13, "Permission denied", "/var/log/pulwave.log")

        assert cli.main(["--list-tools"]) == 1

        err = capsys.readouterr().err
        assert err.startswith("Error: ")
        assert "/var/log/pulwave.log" in err

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--version"])
        assert exc_info.value.code == 0
        assert "pulwave-mcp-supabase" in capsys.readouterr().out


class TestHealthCheck:
    @pytest.fixture
    def stub_provider(self, monkeypatch, postgrest):
        monkeypatch.setattr(
            cli,
            "SupabaseProvider",
            lambda config: SupabaseProvider(config, transport=httpx.MockTransport(postgrest.handler)),
        )

    @pytest.mark.asyncio
    async def test_healthy(self, supabase_env, stub_provider, postgrest, capsys):
        postgrest.add("/profiles", [])

        assert await cli.health_check(McpServerSettings()) == 0

        status = json.loads(capsys.readouterr().out)
        assert status == {"healthy": True, "provider": "supabase", "admin_client": False, "connected": True}

    @pytest.mark.asyncio
    async def test_unhealthy(self, supabase_env, stub_provider, postgrest, capsys):
        postgrest.add_error("/profiles", 401, "PGRST301", "JWT expired")

        assert await cli.health_check(McpServerSettings()) == 1
        assert json.loads(capsys.readouterr().out)["healthy"] is False


class TestServe:
    @pytest.mark.asyncio
    async def test_returns_when_stdio_closes(self):
        provider = FakeProvider()

        async def session():
            return None

        server = StdioStub(session, provider)

        assert await cli.serve(server) == 0
        assert server.state is ServerState.STOPPED
        assert provider.disconnect_calls == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("signum", [signal.SIGINT, signal.SIGTERM])
    async def test_signal_stops_server(self, signum):
        provider = FakeProvider()
        cancelled = asyncio.Event()

        async def session():
            signal.raise_signal(signum)
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        server = StdioStub(session, provider)

        assert await asyncio.wait_for(cli.serve(server), 5) == 0
        assert cancelled.is_set()
        assert server.state is ServerState.STOPPED
        assert provider.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_session_errors_propagate_after_stop(self):
        provider = FakeProvider()

        async def session():
            raise RuntimeError("stdio broken")

        server = StdioStub(session, provider)

        with pytest.raises(RuntimeError, match="stdio broken"):
            await cli.serve(server)
        assert provider.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_failed_start(self):
        provider = FakeProvider(fail_connect=True)

        async def session():
            raise AssertionError("never served")

        with pytest.raises(Exception, match="connection refused"):
            await cli.serve(StdioStub(session, provider))
        assert provider.disconnect_calls == 1
