from __future__ import annotations

from .formatter import build_strategy_table, format_analysis

__all__ = [
    "build_strategy_table",
    "format_analysis",
]
