"""Shared type aliases for the framework layer."""

from __future__ import annotations

from typing import Any

# Submitted values keyed by field id; nested for table rows and choice groups
DataRecord = dict[str, Any]

# [left, top, right, bottom] in points
Margin = tuple[float, float, float, float]

# Column width: "auto", "*" (flexible) or a fixed size in points
Width = str | float
