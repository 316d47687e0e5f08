# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Reusable input schemas shared across tool definitions.

Tool inputs are pydantic models. Fields are snake_case in Python and camelCase
on the wire (``page_size`` <-> ``pageSize``); both spellings are accepted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, create_model
from pydantic.alias_generators import to_camel

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"

Uuid = Annotated[str, StringConstraints(pattern=UUID_PATTERN)]
"""Canonical 8-4-4-4-12 hex UUID string."""

LocaleCode = Annotated[str, StringConstraints(min_length=2, max_length=2, pattern=r"^[A-Za-z]{2}$")]
"""Two-letter locale code such as ``en`` or ``pt``."""

IsoDateTime = datetime
"""ISO-8601 timestamp; parsed into ``datetime``."""

SearchText = Annotated[str, StringConstraints(min_length=2, strip_whitespace=True)]
"""Free-text search query of at least two characters."""

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class ToolInput(BaseModel):
    """Base class for every tool input schema."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class EmptyInput(ToolInput):
    """Input schema for tools that take no arguments."""


class IdInput(ToolInput):
    """Single record lookup by UUID."""

    id: Uuid = Field(..., description="Record UUID")


class Pagination(ToolInput):
    """1-based page number plus page size."""

    page: int = Field(1, ge=1, description="Page number (1-based)")
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Rows per page")


def paginated(default_page_size: int = DEFAULT_PAGE_SIZE, max_page_size: int = MAX_PAGE_SIZE) -> type[Pagination]:
    """Return a ``Pagination`` variant with a different default/maximum page size.

    Example:
        class ListAuditLogsInput(paginated(50)):
            action: str | None = None
    """
    if default_page_size == DEFAULT_PAGE_SIZE and max_page_size == MAX_PAGE_SIZE:
        return Pagination
    return create_model(
        f"Pagination{default_page_size}Of{max_page_size}",
        __base__=Pagination,
        page_size=(
            int,
            Field(default_page_size, ge=1, le=max_page_size, description="Rows per page"),
        ),
    )


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "EmptyInput",
    "IdInput",
    "IsoDateTime",
    "LocaleCode",
    "MAX_PAGE_SIZE",
    "Pagination",
    "SearchText",
    "ToolInput",
    "UUID_PATTERN",
    "Uuid",
    "paginated",
]
