from __future__ import annotations

from .strategy_aggregator import StrategyAggregator, rank_yields

__all__ = [
    "StrategyAggregator",
    "rank_yields",
]
