# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Schema tools.

Tools for introspecting the database schema and running read-only SQL.
"""

from __future__ import annotations

import logging
import re
from typing import Annotated, Any

from pydantic import Field, StringConstraints

from ...core.exceptions import ErrorKind, ProviderException
from ...core.provider import ensure_read_only_sql
from ...core.results import ToolResult, format_error
from ...core.schemas import ToolInput
from ...core.tool import ToolDescriptor, define_read_only_tool
from ..provider import SupabaseProvider

logger = logging.getLogger(__name__)

Identifier = Annotated[str, StringConstraints(pattern=r"^[A-Za-z_][A-Za-z0-9_]*$", max_length=63)]

KNOWN_TABLES = [
    "profiles",
    "addresses",
    "properties",
    "buildings",
    "units",
    "leases",
    "ui_translations",
    "master_data_types",
    "master_data_values",
    "feature_flags",
    "audit_logs",
    "system_config",
    "locales",
]

COMMON_ENUMS: dict[str, list[str]] = {
    "user_role": ["user", "admin", "super_admin"],
    "status": ["active", "inactive", "pending"],
    "property_type": ["residential", "commercial", "industrial", "land"],
    "lease_status": ["active", "expired", "terminated", "pending"],
}

_LIMIT_CLAUSE = re.compile(r"\bLIMIT\b", re.IGNORECASE)


class ListTablesInput(ToolInput):
    schema_name: Identifier = Field("public", alias="schema")


class DescribeTableInput(ToolInput):
    table: Identifier = Field(..., description="Table name")
    schema_name: Identifier = Field("public", alias="schema")


class RunQueryInput(ToolInput):
    sql: str = Field(..., min_length=1, description="SQL SELECT query to execute")
    limit: int = Field(100, ge=1, le=1000)


class EnumValuesInput(ToolInput):
    enum_name: str = Field(..., min_length=1, description="Name of the enum type")


async def list_tables(params: ListTablesInput, provider: SupabaseProvider) -> Any:
    try:
        resp = await (
            provider.table("information_schema.tables")
            .select("table_name, table_type")
            .eq("table_schema", params.schema_name)
            .order("table_name")
            .execute()
        )
    except ProviderException as exc:
        logger.debug(f"Schema introspection unavailable: {exc}")
        return {
            "note": "Schema introspection not available. Listing known tables.",
            "tables": KNOWN_TABLES,
        }
    return resp.data or []


async def describe_table(params: DescribeTableInput, provider: SupabaseProvider) -> dict[str, Any]:
    try:
        resp = await (
            provider.table("information_schema.columns")
            .select("column_name, data_type, is_nullable, column_default")
            .eq("table_schema", params.schema_name)
            .eq("table_name", params.table)
            .order("ordinal_position")
            .execute()
        )
        return {"table": params.table, "columns": resp.data or []}
    except ProviderException as exc:
        logger.debug(f"Column introspection unavailable for {params.table}: {exc}")

    # Fall back to inferring columns from one row
    try:
        sample = await provider.table(params.table).select("*").limit(1).execute()
    except ProviderException as exc:
        raise ProviderException(
            f"Cannot describe table: {exc.message}",
            provider=provider.name,
            code=exc.code,
            status_code=exc.status_code,
        ) from exc

    rows = sample.data or []
    if not rows:
        return {"table": params.table, "columns": [], "note": "Table empty or inaccessible"}
    return {
        "table": params.table,
        "columns": [{"column_name": col, "inferred": True} for col in rows[0]],
    }


async def run_query(params: RunQueryInput, provider: SupabaseProvider) -> Any:
    sql = ensure_read_only_sql(params.sql).rstrip(";").rstrip()
    if not _LIMIT_CLAUSE.search(sql):
        sql = f"{sql} LIMIT {params.limit}"

    try:
        rows = await provider.execute(sql)
    except ProviderException as exc:
        return format_error(
            exc,
            suggestion="Direct SQL execution may not be enabled. Try list_profiles, search_translations, "
            "or describe_table instead.",
        )
    return {"rows": rows, "rowCount": len(rows)}


async def get_enum_values(params: EnumValuesInput, provider: SupabaseProvider) -> Any:
    resp = await (
        provider.table("master_data_types")
        .select("*, values:master_data_values(key, name)")
        .eq("key", params.enum_name)
        .maybe_single()
        .execute()
    )
    master_data = resp.data
    if master_data:
        return {
            "enumName": params.enum_name,
            "source": "master_data",
            "values": [v["key"] for v in master_data.get("values") or []],
        }

    if params.enum_name in COMMON_ENUMS:
        return {
            "enumName": params.enum_name,
            "source": "common",
            "values": COMMON_ENUMS[params.enum_name],
        }

    return ToolResult.failure(
        ErrorKind.NOT_FOUND,
        f"Enum not found: {params.enum_name}",
        suggestion="Use list_master_data to see available types.",
    )


def create_schema_tools() -> list[ToolDescriptor]:
    return [
        define_read_only_tool(
            name="list_tables",
            description="List all tables in the database with their basic info.",
            input_schema=ListTablesInput,
            handler=list_tables,
        ),
        define_read_only_tool(
            name="describe_table",
            description="Get column information for a specific table.",
            input_schema=DescribeTableInput,
            handler=describe_table,
        ),
        define_read_only_tool(
            name="run_query",
            description=(
                "Execute a read-only SQL query. Only SELECT statements are allowed. "
                "Use for complex queries not covered by other tools."
            ),
            input_schema=RunQueryInput,
            handler=run_query,
        ),
        define_read_only_tool(
            name="get_enum_values",
            description="Get possible values for a database enum type.",
            input_schema=EnumValuesInput,
            handler=get_enum_values,
        ),
    ]
