"""Domain models for the yield assistant."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TokenBalance:
    """A wallet holding of one token, as reported by the scanner."""

    token: str
    balance: float
    decimals: int
    usd_value: float


@dataclass(frozen=True)
class YieldStrategy:
    """An actionable deposit of ``amount`` of ``token`` into ``protocol``.

    ``estimated_apy`` is in percentage points.
    """

    protocol: str
    token: str
    amount: float
    estimated_apy: float
    estimated_yield_per_day: float
    risks: tuple[str, ...] = ()
    requirements: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "protocol": self.protocol,
            "token": self.token,
            "amount": self.amount,
            "estimatedApy": self.estimated_apy,
            "estimatedYieldPerDay": self.estimated_yield_per_day,
            "risks": list(self.risks),
            "requirements": list(self.requirements),
        }


@dataclass(frozen=True)
class MarketContext:
    """Market summary handed to the recommendation service."""

    native_price: float
    total_tvl: float
    conditions: str
    native_symbol: str = "APT"

    def render(self) -> str:
        return (
            f"- {self.native_symbol} Price: ${self.native_price}\n"
            f"- Total TVL: ${self.total_tvl}\n"
            f"- Market Conditions: {self.conditions}"
        )


@dataclass
class YieldAnalysis:
    """Result of a wallet analysis."""

    strategies: list[YieldStrategy] = field(default_factory=list)
    ai_recommendation: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategies": [strategy.to_dict() for strategy in self.strategies],
            "aiRecommendation": self.ai_recommendation,
        }


__all__ = [
    "MarketContext",
    "TokenBalance",
    "YieldAnalysis",
    "YieldStrategy",
]
