"""Core configuration - centralized config for the pulwave_mcp package.

All environment-based configuration should flow through this module.

Usage:
    from pulwave_mcp.core.config import get_config
    config = get_config()

    server_config = config.server_config()
    supabase_config = config.supabase_config()
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .. import __version__
from .exceptions import ConfigException


@dataclass(frozen=True)
class McpServerConfig:
    """Server metadata and dispatch policy. Read-only after startup."""

    name: str
    version: str = __version__
    read_only: bool = True
    tool_timeout: float | None = None


@dataclass(frozen=True)
class SupabaseConfig:
    """Connection parameters for the Supabase data provider."""

    url: str
    anon_key: str
    service_role_key: str | None = None
    http_timeout: float = 15.0

    @property
    def rest_url(self) -> str:
        return f"{self.url.rstrip('/')}/rest/v1"

    def __repr__(self) -> str:
        admin = "set" if self.service_role_key else "unset"
        return f"SupabaseConfig(url={self.url!r}, anon_key='***', service_role_key={admin})"


class McpServerSettings(BaseSettings):
    """Environment settings for Pulwave MCP servers.

    Supabase credentials use the standard SUPABASE_* names; everything else
    uses the PULWAVE_MCP_ prefix.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # SUPABASE SETTINGS
    # ==========================================================================

    supabase_url: str = Field(
        default="",
        description="Supabase project URL",
        validation_alias="SUPABASE_URL",
    )
    supabase_anon_key: str = Field(
        default="",
        description="Supabase anon (public) API key",
        validation_alias="SUPABASE_ANON_KEY",
    )
    supabase_service_role_key: str | None = Field(
        default=None,
        description="Supabase service role key; enables admin-only tools such as run_query",
        validation_alias="SUPABASE_SERVICE_ROLE_KEY",
    )
    http_timeout: float = Field(
        default=15.0,
        description="HTTP timeout in seconds for provider requests",
        validation_alias="PULWAVE_MCP_HTTP_TIMEOUT",
    )

    # ==========================================================================
    # SERVER SETTINGS
    # ==========================================================================

    server_name: str = Field(
        default="pulwave-supabase",
        description="MCP server name advertised to clients",
        validation_alias="PULWAVE_MCP_SERVER_NAME",
    )
    server_version: str = Field(
        default=__version__,
        description="MCP server version advertised to clients",
        validation_alias="PULWAVE_MCP_SERVER_VERSION",
    )
    read_only: bool = Field(
        default=True,
        description="Skip registration of mutating tools",
        validation_alias="PULWAVE_MCP_READ_ONLY",
    )
    tool_timeout: float = Field(
        default=30.0,
        ge=0,
        description="Per-call tool timeout in seconds (0 disables)",
        validation_alias="PULWAVE_MCP_TOOL_TIMEOUT",
    )

    # ==========================================================================
    # LOGGING SETTINGS
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="PULWAVE_MCP_LOG_LEVEL",
    )
    log_format: str = Field(
        default="",
        description="Log format: 'json', 'text', or '' (auto-detect)",
        validation_alias="PULWAVE_MCP_LOG_FORMAT",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (optional)",
        validation_alias="PULWAVE_MCP_LOG_FILE",
    )

    # ==========================================================================
    # DERIVED CONFIG
    # ==========================================================================

    @property
    def missing_required_vars(self) -> list[str]:
        missing = []
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not self.supabase_anon_key:
            missing.append("SUPABASE_ANON_KEY")
        return missing

    def server_config(self) -> McpServerConfig:
        return McpServerConfig(
            name=self.server_name,
            version=self.server_version,
            read_only=self.read_only,
            tool_timeout=self.tool_timeout or None,
        )

    def supabase_config(self) -> SupabaseConfig:
        """Build the provider config.

        Raises:
            ConfigException: If SUPABASE_URL or SUPABASE_ANON_KEY is missing.
        """
        missing = self.missing_required_vars
        if missing:
            raise ConfigException(
                f"Missing required environment variables: {', '.join(missing)}",
                missing_vars=missing,
            )
        return SupabaseConfig(
            url=self.supabase_url,
            anon_key=self.supabase_anon_key,
            service_role_key=self.supabase_service_role_key or None,
            http_timeout=self.http_timeout,
        )


# ==========================================================================
# GLOBAL CONFIG INSTANCE (lazy loaded)
# ==========================================================================

_config: McpServerSettings | None = None


def get_config() -> McpServerSettings:
    """Get the global configuration instance.

    Returns:
        The singleton McpServerSettings instance.
    """
    global _config
    if _config is None:
        _config = McpServerSettings()
    return _config


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _config
    _config = None
