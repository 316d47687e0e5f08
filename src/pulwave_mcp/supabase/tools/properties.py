# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Property tools (real estate domain).

Tools for querying properties, buildings, and leases.
"""

from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

from pydantic import Field

from ...core.exceptions import NotFoundError
from ...core.results import PaginatedResult, paginated_result
from ...core.schemas import IdInput, Pagination, ToolInput, Uuid
from ...core.tool import ToolDescriptor, define_read_only_tool
from ..provider import SupabaseProvider, like_pattern

PropertyType = Literal["residential", "commercial", "industrial", "land"]
PropertyStatus = Literal["active", "inactive", "pending", "sold"]
LeaseStatus = Literal["active", "expired", "terminated", "pending"]


class ListPropertiesInput(Pagination):
    property_type: PropertyType | None = None
    status: PropertyStatus | None = None
    owner_id: Uuid | None = Field(None, description="Filter by owner profile ID")
    search: str | None = Field(None, description="Search by name")


class ListBuildingsInput(Pagination):
    property_id: Uuid | None = Field(None, description="Filter by parent property")
    search: str | None = None


class ListLeasesInput(Pagination):
    status: LeaseStatus | None = None
    property_id: Uuid | None = None
    tenant_id: Uuid | None = None
    expiring_within_days: int | None = Field(None, ge=1, description="Find leases expiring within N days")


class PropertyStatsInput(ToolInput):
    owner_id: Uuid | None = Field(None, description="Filter stats by owner")


async def list_properties(params: ListPropertiesInput, provider: SupabaseProvider) -> PaginatedResult:
    query = (
        provider.table("properties")
        .select("*, addresses(*)", count=True)
        .eq("property_type", params.property_type)
        .eq("status", params.status)
        .eq("owner_id", params.owner_id)
    )
    if params.search:
        query = query.ilike("name", like_pattern(params.search))

    resp = await (
        query.order("created_at", ascending=False)
        .paginate(params.page, params.page_size)
        .execute()
    )
    return paginated_result(resp.data, resp.count, page=params.page, page_size=params.page_size)


async def get_property(params: IdInput, provider: SupabaseProvider) -> dict[str, Any]:
    prop = await provider.get_by_id(
        "properties",
        params.id,
        """
        *,
        addresses(*),
        units(*),
        owner:profiles!owner_id(id, first_name, last_name, email)
        """,
    )
    if prop is None:
        raise NotFoundError("Property", params.id)
    return prop


async def list_buildings(params: ListBuildingsInput, provider: SupabaseProvider) -> PaginatedResult:
    query = (
        provider.table("buildings")
        .select("*, property:properties(name), addresses(*)", count=True)
        .eq("property_id", params.property_id)
    )
    if params.search:
        query = query.ilike("name", like_pattern(params.search))

    resp = await query.order("name").paginate(params.page, params.page_size).execute()
    return paginated_result(resp.data, resp.count, page=params.page, page_size=params.page_size)


async def list_leases(params: ListLeasesInput, provider: SupabaseProvider) -> PaginatedResult:
    query = (
        provider.table("leases")
        .select(
            """
            *,
            unit:units(id, name, property:properties(id, name)),
            tenant:profiles(id, first_name, last_name, email)
            """,
            count=True,
        )
        .eq("status", params.status)
        .eq("units.property_id", params.property_id)
        .eq("tenant_id", params.tenant_id)
    )

    if params.expiring_within_days:
        now = datetime.now(UTC)
        query = query.gte("end_date", now).lte("end_date", now + timedelta(days=params.expiring_within_days))

    resp = await query.order("end_date").paginate(params.page, params.page_size).execute()
    return paginated_result(resp.data, resp.count, page=params.page, page_size=params.page_size)


async def _count(provider: SupabaseProvider, table: str, **filters: Any) -> int:
    query = provider.table(table).select("id", count=True)
    for column, value in filters.items():
        query = query.eq(column, value)
    resp = await query.limit(1).execute()
    return resp.count or 0


async def get_property_stats(params: PropertyStatsInput, provider: SupabaseProvider) -> dict[str, Any]:
    properties = await _count(provider, "properties", owner_id=params.owner_id)
    buildings = await _count(provider, "buildings")
    units = await _count(provider, "units")

    resp = await provider.table("leases").select("status").execute()
    statuses = Counter(row.get("status") for row in resp.data or [])

    return {
        "properties": properties,
        "buildings": buildings,
        "units": units,
        "leases": {
            "total": sum(statuses.values()),
            "active": statuses["active"],
            "expired": statuses["expired"],
        },
    }


def create_property_tools() -> list[ToolDescriptor]:
    return [
        define_read_only_tool(
            name="list_properties",
            description=(
                "List real estate properties with filtering options. "
                "Returns property details including type, status, and address."
            ),
            input_schema=ListPropertiesInput,
            handler=list_properties,
        ),
        define_read_only_tool(
            name="get_property",
            description="Get detailed property information by ID, including units, leases, and related data.",
            input_schema=IdInput,
            handler=get_property,
        ),
        define_read_only_tool(
            name="list_buildings",
            description=(
                "List buildings with optional filtering. Returns building info including units count and occupancy."
            ),
            input_schema=ListBuildingsInput,
            handler=list_buildings,
        ),
        define_read_only_tool(
            name="list_leases",
            description=(
                "List leases with filtering options. Returns lease details including tenant, unit, and payment status."
            ),
            input_schema=ListLeasesInput,
            handler=list_leases,
        ),
        define_read_only_tool(
            name="get_property_stats",
            description="Get aggregate statistics about properties, buildings, and leases.",
            input_schema=PropertyStatsInput,
            handler=get_property_stats,
        ),
    ]
