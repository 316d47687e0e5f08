# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Pulwave Contributors

"""Pulwave MCP tool servers."""

__version__ = "0.1.0"
