# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Profile tools.

Tools for querying user profiles.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from ...core.exceptions import NotFoundError
from ...core.results import PaginatedResult, paginated_result
from ...core.schemas import IdInput, Pagination, SearchText, ToolInput
from ...core.tool import ToolDescriptor, define_read_only_tool
from ..provider import SupabaseProvider, like_pattern

PROFILE_COLUMNS = "id, first_name, last_name, email, role, avatar_url, locale, created_at, updated_at"


class ListProfilesInput(Pagination):
    role: Literal["user", "admin", "super_admin"] | None = Field(None, description="Filter by role")
    search: str | None = Field(None, description="Search by first name, last name or email")


class SearchProfilesInput(ToolInput):
    query: SearchText = Field(..., description="Search query")
    limit: int = Field(20, ge=1, le=100)


def _name_or_email(text: str) -> str:
    pattern = like_pattern(text)
    return f"first_name.ilike.{pattern},last_name.ilike.{pattern},email.ilike.{pattern}"


async def list_profiles(params: ListProfilesInput, provider: SupabaseProvider) -> PaginatedResult:
    query = provider.table("profiles").select(PROFILE_COLUMNS, count=True).eq("role", params.role)
    if params.search:
        query = query.or_(_name_or_email(params.search))

    resp = await (
        query.order("created_at", ascending=False)
        .paginate(params.page, params.page_size)
        .execute()
    )
    return paginated_result(resp.data, resp.count, page=params.page, page_size=params.page_size)


async def get_profile(params: IdInput, provider: SupabaseProvider) -> dict:
    profile = await provider.get_by_id("profiles", params.id, f"{PROFILE_COLUMNS}, addresses(*)")
    if profile is None:
        raise NotFoundError("Profile", params.id)
    return profile


async def search_profiles(params: SearchProfilesInput, provider: SupabaseProvider) -> list[dict]:
    resp = await (
        provider.table("profiles")
        .select(PROFILE_COLUMNS)
        .or_(_name_or_email(params.query))
        .order("last_name")
        .limit(params.limit)
        .execute()
    )
    return resp.data or []


def create_profile_tools() -> list[ToolDescriptor]:
    return [
        define_read_only_tool(
            name="list_profiles",
            description="List user profiles with optional role filter and name/email search.",
            input_schema=ListProfilesInput,
            handler=list_profiles,
        ),
        define_read_only_tool(
            name="get_profile",
            description="Get a user profile by ID, including addresses.",
            input_schema=IdInput,
            handler=get_profile,
        ),
        define_read_only_tool(
            name="search_profiles",
            description="Search profiles by first name, last name or email.",
            input_schema=SearchProfilesInput,
            handler=search_profiles,
        ),
    ]
