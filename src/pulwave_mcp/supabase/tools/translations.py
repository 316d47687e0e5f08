# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Translation tools.

Tools for querying UI translations and finding gaps between locales.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Literal

from pydantic import Field

from ...core.results import PaginatedResult, paginated_result
from ...core.schemas import EmptyInput, LocaleCode, SearchText, ToolInput, paginated
from ...core.tool import ToolDescriptor, define_read_only_tool
from ..provider import SupabaseProvider, like_pattern

TABLE = "ui_translations"


class ListTranslationsInput(paginated(50)):
    locale: LocaleCode | None = Field(None, description='Locale code (e.g., "en", "pt")')
    category: str | None = Field(None, description="Translation category")
    key_pattern: str | None = Field(None, description="Key pattern to match (supports * wildcards)")


class SearchTranslationsInput(ToolInput):
    query: SearchText = Field(..., description="Search query")
    search_in: Literal["key", "value", "both"] = "both"
    locale: LocaleCode | None = None
    limit: int = Field(20, ge=1, le=100)


class MissingTranslationsInput(ToolInput):
    source_locale: LocaleCode = Field(..., description="Source locale to compare from")
    target_locale: LocaleCode = Field(..., description="Target locale to check")
    category: str | None = None
    limit: int = Field(100, ge=1, le=500)


async def list_translations(params: ListTranslationsInput, provider: SupabaseProvider) -> PaginatedResult:
    query = (
        provider.table(TABLE)
        .select("*", count=True)
        .eq("locale", params.locale)
        .eq("category", params.category)
    )
    if params.key_pattern:
        query = query.ilike("key", params.key_pattern)

    resp = await query.order("key").paginate(params.page, params.page_size).execute()
    return paginated_result(resp.data, resp.count, page=params.page, page_size=params.page_size)


async def search_translations(params: SearchTranslationsInput, provider: SupabaseProvider) -> list[dict]:
    pattern = like_pattern(params.query)
    query = provider.table(TABLE).select("*")

    if params.search_in == "key":
        query = query.ilike("key", pattern)
    elif params.search_in == "value":
        query = query.ilike("value", pattern)
    else:
        query = query.or_(f"key.ilike.{pattern},value.ilike.{pattern}")

    resp = await query.eq("locale", params.locale).limit(params.limit).execute()
    return resp.data or []


async def _keys_for_locale(provider: SupabaseProvider, locale: str, category: str | None) -> list[str]:
    resp = await provider.table(TABLE).select("key").eq("locale", locale).eq("category", category).execute()
    return [row["key"] for row in resp.data or []]


async def get_missing_translations(params: MissingTranslationsInput, provider: SupabaseProvider) -> dict[str, Any]:
    source_keys = await _keys_for_locale(provider, params.source_locale, params.category)
    target_keys = set(await _keys_for_locale(provider, params.target_locale, params.category))

    missing = [key for key in source_keys if key not in target_keys][: params.limit]
    return {
        "sourceLocale": params.source_locale,
        "targetLocale": params.target_locale,
        "missingCount": len(missing),
        "missingKeys": missing,
    }


async def get_translation_stats(params: EmptyInput, provider: SupabaseProvider) -> dict[str, Any]:
    resp = await provider.table(TABLE).select("locale, category").execute()
    rows = resp.data or []

    by_locale: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    for row in rows:
        by_locale[row["locale"]][row["category"]] += 1

    return {
        "totalTranslations": len(rows),
        "byLocale": {locale: dict(categories) for locale, categories in by_locale.items()},
    }


def create_translation_tools() -> list[ToolDescriptor]:
    return [
        define_read_only_tool(
            name="list_translations",
            description="List translations with optional filtering by locale, category, or key pattern.",
            input_schema=ListTranslationsInput,
            handler=list_translations,
        ),
        define_read_only_tool(
            name="search_translations",
            description="Search translations by key or value content. Useful for finding specific text or patterns.",
            input_schema=SearchTranslationsInput,
            handler=search_translations,
        ),
        define_read_only_tool(
            name="get_missing_translations",
            description=(
                "Find translation keys that exist in one locale but not another. Useful for identifying gaps."
            ),
            input_schema=MissingTranslationsInput,
            handler=get_missing_translations,
        ),
        define_read_only_tool(
            name="get_translation_stats",
            description="Get translation statistics by locale and category.",
            input_schema=EmptyInput,
            handler=get_translation_stats,
        ),
    ]
