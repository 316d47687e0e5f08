# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Supabase domain tool sets."""

from __future__ import annotations

from ...core.tool import ToolDescriptor
from .admin import create_admin_tools
from .profiles import create_profile_tools
from .properties import create_property_tools
from .schema import create_schema_tools
from .translations import create_translation_tools


def create_all_tools() -> list[ToolDescriptor]:
    """Every Supabase tool, grouped by domain."""
    return [
        *create_profile_tools(),
        *create_translation_tools(),
        *create_property_tools(),
        *create_admin_tools(),
        *create_schema_tools(),
    ]


__all__ = [
    "create_admin_tools",
    "create_all_tools",
    "create_profile_tools",
    "create_property_tools",
    "create_schema_tools",
    "create_translation_tools",
]
