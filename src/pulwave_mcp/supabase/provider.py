# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Supabase data provider.

Talks to the project's PostgREST endpoint (``<SUPABASE_URL>/rest/v1``) with
httpx. ``table()`` returns a small fluent query builder modelled on the
Supabase client API:

    resp = await (
        provider.table("properties")
        .select("*, addresses(*)", count=True)
        .eq("status", "active")
        .order("created_at", ascending=False)
        .paginate(page=1, page_size=20)
        .execute()
    )
    resp.data, resp.count
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

import httpx

from ..core.config import SupabaseConfig
from ..core.exceptions import ConfigException, ProviderException
from ..core.provider import DataProvider, Pagination, ensure_read_only_sql
from ..core.results import PaginatedResult, paginated_result

logger = logging.getLogger(__name__)

# PostgREST error code for "JSON object requested, multiple (or no) rows returned"
NO_ROWS_CODE = "PGRST116"

OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"

_RESERVED_FILTER_CHARS = set(',()"\\')


def _clean_select(columns: str) -> str:
    """Drop whitespace outside double quotes, like the Supabase JS client."""
    quoted = False
    out = []
    for ch in columns:
        if ch.isspace() and not quoted:
            continue
        if ch == '"':
            quoted = not quoted
        out.append(ch)
    return "".join(out)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime | date):
        return value.isoformat()
    return str(value)


def like_pattern(text: str) -> str:
    """Build a ``*text*`` pattern safe for PostgREST filter expressions."""
    cleaned = "".join(ch for ch in text if ch not in _RESERVED_FILTER_CHARS)
    return f"*{cleaned.replace('%', '*')}*"


def parse_content_range(header: str | None) -> int | None:
    """Extract the total from ``Content-Range: 0-19/123``; ``*`` means unknown."""
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1].strip()
    if total == "*" or not total.isdigit():
        return None
    return int(total)


@dataclass
class QueryResponse:
    """Rows (or a single object) returned by PostgREST, plus the exact count if requested."""

    data: Any
    count: int | None = None


class TableQuery:
    """Fluent PostgREST read query against one table or view."""

    def __init__(self, provider: SupabaseProvider, table: str, admin: bool = False):
        self._provider = provider
        self._table = table
        self._admin = admin
        self._select = "*"
        self._count = False
        self._filters: list[tuple[str, str]] = []
        self._order: list[str] = []
        self._limit: int | None = None
        self._offset: int | None = None
        self._single = False
        self._maybe = False

    @property
    def table_name(self) -> str:
        return self._table

    def select(self, columns: str = "*", count: bool = False) -> TableQuery:
        self._select = _clean_select(columns) or "*"
        self._count = count
        return self

    def _filter(self, column: str, operator: str, value: Any) -> TableQuery:
        # None means "no filter", mirroring optional tool arguments
        if value is not None:
            self._filters.append((column, f"{operator}.{_format_value(value)}"))
        return self

    def eq(self, column: str, value: Any) -> TableQuery:
        return self._filter(column, "eq", value)

    def neq(self, column: str, value: Any) -> TableQuery:
        return self._filter(column, "neq", value)

    def gt(self, column: str, value: Any) -> TableQuery:
        return self._filter(column, "gt", value)

    def gte(self, column: str, value: Any) -> TableQuery:
        return self._filter(column, "gte", value)

    def lt(self, column: str, value: Any) -> TableQuery:
        return self._filter(column, "lt", value)

    def lte(self, column: str, value: Any) -> TableQuery:
        return self._filter(column, "lte", value)

    def ilike(self, column: str, pattern: str) -> TableQuery:
        return self._filter(column, "ilike", pattern.replace("%", "*"))

    def in_(self, column: str, values: list[Any]) -> TableQuery:
        items = ",".join(f'"{_format_value(v)}"' for v in values)
        self._filters.append((column, f"in.({items})"))
        return self

    def or_(self, expression: str) -> TableQuery:
        self._filters.append(("or", f"({expression})"))
        return self

    def order(self, column: str, ascending: bool = True) -> TableQuery:
        self._order.append(f"{column}.{'asc' if ascending else 'desc'}")
        return self

    def limit(self, count: int) -> TableQuery:
        self._limit = count
        return self

    def range(self, start: int, end: int) -> TableQuery:
        """Restrict to rows ``start`` through ``end`` inclusive."""
        self._offset = start
        self._limit = end - start + 1
        return self

    def paginate(self, page: int, page_size: int) -> TableQuery:
        pagination = Pagination(page=page, page_size=page_size)
        return self.range(pagination.offset, pagination.range_end)

    def single(self) -> TableQuery:
        """Return one object; fails with PGRST116 when there is no row."""
        self._single = True
        return self

    def maybe_single(self) -> TableQuery:
        """Return one object, or None when there is no row."""
        self._single = True
        self._maybe = True
        return self

    def build_params(self) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = [("select", self._select), *self._filters]
        if self._order:
            params.append(("order", ",".join(self._order)))
        if self._limit is not None:
            params.append(("limit", str(self._limit)))
        if self._offset:
            params.append(("offset", str(self._offset)))
        return params

    def build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._count:
            headers["Prefer"] = "count=exact"
        if self._single:
            headers["Accept"] = OBJECT_MEDIA_TYPE
        return headers

    async def execute(self) -> QueryResponse:
        """Run the query.

        Raises:
            ProviderException: On HTTP or PostgREST errors.
        """
        try:
            response = await self._provider.request(
                "GET",
                f"/{self._table}",
                params=self.build_params(),
                headers=self.build_headers(),
                admin=self._admin,
            )
        except ProviderException as exc:
            if self._maybe and exc.code == NO_ROWS_CODE:
                return QueryResponse(data=None)
            raise

        count = parse_content_range(response.headers.get("content-range")) if self._count else None
        return QueryResponse(data=_decode(response), count=count)


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except json.JSONDecodeError as exc:
        raise ProviderException(
            f"Invalid JSON from Supabase: {exc}",
            provider="supabase",
            status_code=response.status_code,
        ) from exc


class SupabaseProvider(DataProvider):
    """Supabase data provider implementation."""

    name = "supabase"

    def __init__(self, config: SupabaseConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._admin_client: httpx.AsyncClient | None = None

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------

    def _make_client(self, key: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.rest_url,
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Accept": "application/json",
            },
            timeout=self.config.http_timeout,
            transport=self._transport,
        )

    async def connect(self) -> None:
        if self._client is not None:
            return
        self._client = self._make_client(self.config.anon_key)
        if self.config.service_role_key:
            self._admin_client = self._make_client(self.config.service_role_key)
        logger.debug(f"Supabase clients created for {self.config.url} (admin={self.has_admin})")

    async def disconnect(self) -> None:
        client, self._client = self._client, None
        admin_client, self._admin_client = self._admin_client, None
        for c in (client, admin_client):
            if c is not None:
                await c.aclose()

    async def is_connected(self) -> bool:
        if self._client is None:
            return False
        try:
            await self.table("profiles").select("id").limit(1).execute()
            return True
        except ProviderException as exc:
            logger.debug(f"Supabase connectivity probe failed: {exc}")
            return False

    @property
    def has_admin(self) -> bool:
        return self._admin_client is not None

    def get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise ProviderException("Supabase not connected. Call connect() first.", provider=self.name)
        return self._client

    def get_admin_client(self) -> httpx.AsyncClient:
        if self._admin_client is None:
            raise ConfigException(
                "Admin client not available. Provide SUPABASE_SERVICE_ROLE_KEY.",
                missing_vars=["SUPABASE_SERVICE_ROLE_KEY"],
            )
        return self._admin_client

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
        admin: bool = False,
    ) -> httpx.Response:
        """Send one request to PostgREST.

        Raises:
            ProviderException: On transport errors or 4xx/5xx responses.
        """
        client = self.get_admin_client() if admin else self.get_client()
        try:
            response = await client.request(method, path, params=params, json=json_body, headers=headers)
        except httpx.HTTPError as exc:
            raise ProviderException(f"Supabase request failed: {exc}", provider=self.name) from exc

        if response.status_code >= 400:
            raise self._error_from_response(response)
        return response

    def _error_from_response(self, response: httpx.Response) -> ProviderException:
        code = None
        message = response.text[:500] or response.reason_phrase
        try:
            body = response.json()
        except json.JSONDecodeError:
            body = None
        if isinstance(body, dict):
            code = body.get("code")
            message = body.get("message") or message
        return ProviderException(
            f"Query failed: {message}",
            provider=self.name,
            code=code,
            status_code=response.status_code,
        )

    def table(self, name: str, admin: bool = False) -> TableQuery:
        return TableQuery(self, name, admin=admin)

    async def rpc(self, function: str, params: dict[str, Any] | None = None, admin: bool = False) -> Any:
        """Call a Postgres function exposed through PostgREST."""
        response = await self.request("POST", f"/rpc/{function}", json_body=params or {}, admin=admin)
        return _decode(response)

    # ------------------------------------------------------------------
    # DataProvider contract
    # ------------------------------------------------------------------

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
        q = self.table(domain).select(select, count=True)
        for column, value in (filters or {}).items():
            q.eq(column, value)
        if order_by:
            q.order(order_by, ascending=not descending)
        if pagination is not None:
            q.paginate(pagination.page, pagination.page_size)

        resp = await q.execute()
        if pagination is None:
            return paginated_result(resp.data, resp.count)
        return paginated_result(resp.data, resp.count, page=pagination.page, page_size=pagination.page_size)

    async def get_by_id(self, domain: str, record_id: str, select: str | None = None) -> dict[str, Any] | None:
        resp = await self.table(domain).select(select or "*").eq("id", record_id).maybe_single().execute()
        return resp.data

    async def search(self, domain: str, column: str, text: str, limit: int = 20) -> list[dict[str, Any]]:
        resp = await self.table(domain).select("*").ilike(column, like_pattern(text)).limit(limit).execute()
        return resp.data or []

    async def get_schema(self) -> dict[str, list[str]]:
        """List table and view names via the ``get_tables``/``get_views`` functions."""
        tables = await self.rpc("get_tables") or []
        views = await self.rpc("get_views") or []
        return {
            "tables": [t["table_name"] for t in tables],
            "views": [v["view_name"] for v in views],
        }

    async def execute(self, sql: str) -> list[dict[str, Any]]:
        """Execute read-only SQL.

        Uses the ``execute_sql`` function through the service-role client when
        one is configured, otherwise the anon-safe ``execute_readonly_sql``.
        """
        sql = ensure_read_only_sql(sql)
        if self.has_admin:
            rows = await self.rpc("execute_sql", {"query": sql}, admin=True)
        else:
            rows = await self.rpc("execute_readonly_sql", {"query": sql})
        return rows or []
