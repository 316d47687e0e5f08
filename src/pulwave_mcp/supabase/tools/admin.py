# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Admin tools.

Administrative tools for system management: master data, feature flags,
audit logs, system configuration and locales.
"""

from __future__ import annotations

from pydantic import Field

from ...core.results import PaginatedResult, paginated_result
from ...core.schemas import IsoDateTime, ToolInput, Uuid, paginated
from ...core.tool import ToolDescriptor, define_read_only_tool
from ..provider import SupabaseProvider


class ListMasterDataInput(ToolInput):
    type_key: str | None = Field(None, description="Filter by master data type key")
    include_values: bool = Field(True, description="Include values for each type")


class ListFeatureFlagsInput(ToolInput):
    enabled_only: bool = False


class ListAuditLogsInput(paginated(50)):
    user_id: Uuid | None = Field(None, description="Filter by user who performed action")
    action: str | None = Field(None, description="Filter by action type")
    table_name: str | None = Field(None, description="Filter by affected table")
    from_date: IsoDateTime | None = None
    to_date: IsoDateTime | None = None


class SystemConfigInput(ToolInput):
    category: str | None = Field(None, description="Filter by config category")


class ListLocalesInput(ToolInput):
    enabled_only: bool = True


async def list_master_data(params: ListMasterDataInput, provider: SupabaseProvider) -> list[dict]:
    columns = "*, values:master_data_values(*)" if params.include_values else "*"
    resp = await provider.table("master_data_types").select(columns).eq("key", params.type_key).order("key").execute()
    return resp.data or []


async def list_feature_flags(params: ListFeatureFlagsInput, provider: SupabaseProvider) -> list[dict]:
    query = provider.table("feature_flags").select("*")
    if params.enabled_only:
        query = query.eq("enabled", True)
    resp = await query.order("name").execute()
    return resp.data or []


async def list_audit_logs(params: ListAuditLogsInput, provider: SupabaseProvider) -> PaginatedResult:
    resp = await (
        provider.table("audit_logs")
        .select("*, user:profiles(id, first_name, last_name)", count=True)
        .eq("user_id", params.user_id)
        .eq("action", params.action)
        .eq("table_name", params.table_name)
        .gte("created_at", params.from_date)
        .lte("created_at", params.to_date)
        .order("created_at", ascending=False)
        .paginate(params.page, params.page_size)
        .execute()
    )
    return paginated_result(resp.data, resp.count, page=params.page, page_size=params.page_size)


async def get_system_config(params: SystemConfigInput, provider: SupabaseProvider) -> list[dict]:
    resp = await provider.table("system_config").select("*").eq("category", params.category).order("key").execute()
    return resp.data or []


async def list_locales(params: ListLocalesInput, provider: SupabaseProvider) -> list[dict]:
    query = provider.table("locales").select("*")
    if params.enabled_only:
        query = query.eq("enabled", True)
    resp = await query.order("name").execute()
    return resp.data or []


def create_admin_tools() -> list[ToolDescriptor]:
    return [
        define_read_only_tool(
            name="list_master_data",
            description=(
                "List master data types and values. "
                "Master data includes enums, reference data, and system configurations."
            ),
            input_schema=ListMasterDataInput,
            handler=list_master_data,
        ),
        define_read_only_tool(
            name="list_feature_flags",
            description="List feature flags and their current states.",
            input_schema=ListFeatureFlagsInput,
            handler=list_feature_flags,
        ),
        define_read_only_tool(
            name="list_audit_logs",
            description="Query audit logs for system activity tracking. Useful for debugging and compliance.",
            input_schema=ListAuditLogsInput,
            handler=list_audit_logs,
        ),
        define_read_only_tool(
            name="get_system_config",
            description="Get system configuration values.",
            input_schema=SystemConfigInput,
            handler=get_system_config,
        ),
        define_read_only_tool(
            name="list_locales",
            description="List supported locales/languages in the system.",
            input_schema=ListLocalesInput,
            handler=list_locales,
        ),
    ]
