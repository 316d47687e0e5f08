"""Global test fixtures for the Pulwave MCP test suite."""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from typing import Any
from uuid import UUID, uuid4

import httpx
import pytest

from pulwave_mcp.core.config import McpServerConfig, SupabaseConfig, clear_config_cache
from pulwave_mcp.core.provider import DataProvider, Pagination, ensure_read_only_sql
from pulwave_mcp.core.results import PaginatedResult, paginated_result
from pulwave_mcp.supabase.provider import SupabaseProvider

# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove SUPABASE_ and PULWAVE_MCP_ variables and hide any local .env file."""
    env_prefixes = ("SUPABASE_", "PULWAVE_MCP_")
    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in env_prefixes):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def supabase_env(clean_env, monkeypatch):
    """Set up Supabase environment variables."""
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key-12345")


# ============================================================================
# Fake DataProvider
# ============================================================================


class FakeProvider(DataProvider):
    """In-memory DataProvider that records lifecycle calls."""

    name = "fake"

    def __init__(
        self,
        rows: list[dict[str, Any]] | None = None,
        count: int | None = None,
        fail_connect: bool = False,
    ):
        self.rows = rows or []
        self.count = count
        self.fail_connect = fail_connect
        self.connected = False
        self.connect_calls = 0
        self.disconnect_calls = 0
        self.queries: list[dict[str, Any]] = []

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.fail_connect:
            raise ConnectionError("connection refused")
        self.connected = True

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False

    async def is_connected(self) -> bool:
        return self.connected

    async def query(
        self,
        domain: str,
        filters: dict[str, Any] | None = None,
        pagination: Pagination | None = None,
        *,
        select: str = "*",
        order_by: str | None = None,
        descending: bool = False,
    ) -> PaginatedResult:
        self.queries.append({"domain": domain, "filters": filters, "pagination": pagination})
        if pagination is None:
            return paginated_result(self.rows, self.count)
        page = self.rows[pagination.offset : pagination.offset + pagination.limit]
        return paginated_result(page, self.count, page=pagination.page, page_size=pagination.page_size)

    async def get_by_id(self, domain: str, record_id: str, select: str | None = None) -> dict[str, Any] | None:
        return next((row for row in self.rows if row.get("id") == record_id), None)

    async def search(self, domain: str, column: str, text: str, limit: int = 20) -> list[dict[str, Any]]:
        return [row for row in self.rows if text.lower() in str(row.get(column, "")).lower()][:limit]

    async def execute(self, sql: str) -> list[dict[str, Any]]:
        ensure_read_only_sql(sql)
        return list(self.rows)


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def server_config() -> McpServerConfig:
    return McpServerConfig(name="test-server", version="0.0.1", read_only=True, tool_timeout=None)


# ============================================================================
# PostgREST stub (httpx.MockTransport)
# ============================================================================


class PostgrestStub:
    """Routes requests by path to canned responses and records them.

    Routes map a path such as ``/properties`` or ``/rpc/execute_sql`` to either
    a JSON body, an ``httpx.Response``, or a callable taking the request.
    """

    def __init__(self):
        self.routes: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, response: Any) -> None:
        self.routes[path] = response

    def add_rows(self, path: str, rows: list[dict[str, Any]], total: int | str | None = None) -> None:
        headers = {}
        if total is not None:
            end = max(len(rows) - 1, 0)
            headers["content-range"] = f"0-{end}/{total}"
        self.routes[path] = httpx.Response(200, json=rows, headers=headers)

    def add_error(self, path: str, status: int, code: str, message: str) -> None:
        self.routes[path] = httpx.Response(status, json={"code": code, "message": message})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/rest/v1")
        route = self.routes.get(path)
        if route is None:
            return httpx.Response(404, json={"code": "PGRST205", "message": f"relation {path} does not exist"})
        if callable(route):
            return route(request)
        if isinstance(route, httpx.Response):
            # Responses are single-use; rebuild so routes can be hit repeatedly
            return httpx.Response(route.status_code, headers=route.headers, content=route.content)
        return httpx.Response(200, json=route)

    def last(self, path: str | None = None) -> httpx.Request:
        matching = [r for r in self.requests if path is None or r.url.path.endswith(path)]
        assert matching, f"no request for {path}"
        return matching[-1]

    @staticmethod
    def params(request: httpx.Request) -> dict[str, list[str]]:
        result: dict[str, list[str]] = {}
        for key, value in request.url.params.multi_items():
            result.setdefault(key, []).append(value)
        return result

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content or b"null")


@pytest.fixture
def postgrest() -> PostgrestStub:
    return PostgrestStub()


@pytest.fixture
def supabase_config() -> SupabaseConfig:
    return SupabaseConfig(url="https://example.supabase.co", anon_key="anon-key", service_role_key=None)


@pytest.fixture
def provider_factory(postgrest) -> Callable[..., SupabaseProvider]:
    """Build a SupabaseProvider wired to the PostgREST stub."""

    def factory(service_role_key: str | None = None) -> SupabaseProvider:
        config = SupabaseConfig(
            url="https://example.supabase.co",
            anon_key="anon-key",
            service_role_key=service_role_key,
        )
        return SupabaseProvider(config, transport=httpx.MockTransport(postgrest.handler))

    return factory


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_uuid() -> UUID:
    return uuid4()


@pytest.fixture
def profile_row_factory():
    """Factory for profile rows."""

    def factory(
        id: str | None = None,
        first_name: str = "Ana",
        last_name: str = "Silva",
        email: str = "ana@example.com",
        role: str = "user",
    ) -> dict[str, Any]:
        return {
            "id": id or str(uuid4()),
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "role": role,
        }

    return factory
