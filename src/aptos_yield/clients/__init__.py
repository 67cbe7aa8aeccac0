from __future__ import annotations

from .aptos import AptosChainClient, ChainClient, EntryArgument
from .recommendation import AnthropicRecommendationClient, RecommendationClient

__all__ = [
    "AnthropicRecommendationClient",
    "AptosChainClient",
    "ChainClient",
    "EntryArgument",
    "RecommendationClient",
]
