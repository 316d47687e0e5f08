# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Data provider contract.

Tool handlers never talk to a database directly; they go through a
``DataProvider`` owned by the server for its whole lifetime. Network
connections and their cleanup belong to the concrete provider.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from .exceptions import ValidationException
from .results import PaginatedResult

READ_ONLY_SQL_PREFIXES = ("SELECT", "WITH")

_SQL_COMMENT = re.compile(r"(--[^\n]*\n?)|(/\*.*?\*/)", re.DOTALL)


@dataclass(frozen=True)
class Pagination:
    """1-based page request."""

    page: int = 1
    page_size: int = 20

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size

    @property
    def range_end(self) -> int:
        """Inclusive index of the last row on this page."""
        return self.offset + self.page_size - 1


class DataProvider(ABC):
    """Abstract backing store used by tool handlers."""

    name: str = "provider"

    @abstractmethod
    async def connect(self) -> None:
        """Open connections. Called once by the server on start."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Release connections. Must be safe to call more than once."""

    @abstractmethod
    async def is_connected(self) -> bool:
        """Probe the backing store."""

    @abstractmethod
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
        """Run an equality-filtered list query against one domain (table).

        ``None`` filter values are ignored. The result's ``count`` is None when
        the provider cannot report a total.
        """

    @abstractmethod
    async def get_by_id(self, domain: str, record_id: str, select: str | None = None) -> dict[str, Any] | None:
        """Return one record or None if it does not exist."""

    @abstractmethod
    async def search(self, domain: str, column: str, text: str, limit: int = 20) -> list[dict[str, Any]]:
        """Case-insensitive substring search on one column."""

    @abstractmethod
    async def execute(self, sql: str) -> list[dict[str, Any]]:
        """Execute a read-only SQL statement and return its rows."""


def strip_sql_comments(sql: str) -> str:
    return _SQL_COMMENT.sub(" ", sql).strip()


def ensure_read_only_sql(sql: str) -> str:
    """Reject anything that is not a SELECT/WITH statement.

    Returns:
        The SQL with surrounding whitespace removed.

    Raises:
        ValidationException: If the statement could mutate data.
    """
    stripped = sql.strip()
    normalized = strip_sql_comments(stripped).upper()
    if not normalized.startswith(READ_ONLY_SQL_PREFIXES):
        raise ValidationException(
            "Only SELECT queries are allowed. Use other tools for mutations.",
            field="sql",
        )
    return stripped
