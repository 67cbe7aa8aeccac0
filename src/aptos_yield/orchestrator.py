"""End-to-end yield analysis and strategy execution."""

from __future__ import annotations

import asyncio
import json
from typing import Awaitable, Callable, Mapping

from .adapters import build_adapters
from .adapters.base import BaseProtocolAdapter
from .calculator import break_even_days, percent_to_fraction
from .clients.aptos import ChainClient
from .clients.recommendation import RecommendationClient
from .constants import (
    DEFAULT_MARKET_CONDITIONS,
    MARKET_CONTEXT_UNAVAILABLE,
    NATIVE_TOKEN,
    RECOMMENDATION_UNAVAILABLE,
)
from .domain import MarketContext, TokenBalance, YieldAnalysis, YieldStrategy
from .processors import StrategyAggregator
from .scanner import TokenScanner
from .state import AppState

PROMPT_TEMPLATE = """As a DeFi yield farming expert, analyze these opportunities:

{strategies}

Current market context:
{market_context}

Please provide:
1. Best strategy recommendation considering risk-adjusted returns
2. Detailed risk assessment for each strategy
3. Step-by-step implementation instructions
4. Market timing considerations
5. Gas cost considerations and break-even analysis

Focus on safety and sustainable yields rather than just highest APY."""


class UnsupportedProtocolError(ValueError):
    """Raised when a strategy names a protocol with no registered adapter."""

    def __init__(self, protocol: str):
        super().__init__(f"Unsupported protocol: {protocol}")
        self.protocol = protocol


def build_prompt(strategies: list[YieldStrategy], market_context: str) -> str:
    """Render the recommendation prompt for a list of strategies."""
    return PROMPT_TEMPLATE.format(
        strategies=json.dumps([s.to_dict() for s in strategies], indent=2),
        market_context=market_context,
    )


class YieldAssistant:
    """Drives wallet scanning, strategy selection, recommendation and execution."""

    def __init__(
        self,
        state: AppState,
        chain: ChainClient,
        recommender: RecommendationClient,
        *,
        scanner: TokenScanner | None = None,
        adapters: Mapping[str, BaseProtocolAdapter] | None = None,
    ):
        self.settings = state.settings
        self.log = state.logger
        self.chain = chain
        self.recommender = recommender
        self.scanner = scanner or TokenScanner(self.settings, chain)
        self.adapters = (
            dict(adapters) if adapters is not None else build_adapters(self.settings, chain)
        )
        self.aggregator = StrategyAggregator(self.adapters, self.settings, self.log)

        self._dispatch: dict[str, Callable[[YieldStrategy], Awaitable[str]]] = {
            "Joule": lambda s: self.adapters["Joule"].deposit(s.token, s.amount),
            "Thala": lambda s: self.adapters["Thala"].stake(s.amount),
            "Amnis": lambda s: self.adapters["Amnis"].stake(s.amount),
            "Echo": lambda s: self.adapters["Echo"].stake(s.amount),
        }

    async def analyze_yield_opportunities(self, address: str) -> YieldAnalysis:
        """Find the best strategy for each held token and ask for a recommendation.

        Wallet scan failures propagate; recommendation failures degrade to a
        fixed message.
        """
        self.log.info("Analyzing yield opportunities", extra={"address": address})

        try:
            balances = await self.scanner.scan_wallet(address)
        except Exception as e:
            self.log.error(
                "Error analyzing yield opportunities: %s",
                e,
                extra={"operation": "analyze_yield_opportunities", "address": address},
            )
            raise

        strategies = await self.select_strategies(balances)
        self.log.info(
            "Found %d strategies across %d balances",
            len(strategies),
            len(balances),
            extra={"address": address},
        )

        ai_recommendation = await self.get_ai_recommendation(strategies)
        return YieldAnalysis(strategies=strategies, ai_recommendation=ai_recommendation)

    async def select_strategies(self, balances: list[TokenBalance]) -> list[YieldStrategy]:
        """Run strategy selection per held token, preserving balance order."""
        held = [balance for balance in balances if balance.balance > 0]
        results = await asyncio.gather(
            *[
                self.aggregator.select_best_strategy(balance.token, balance.balance)
                for balance in held
            ]
        )
        return [strategy for strategy in results if strategy is not None]

    async def build_market_context(self) -> MarketContext:
        price, total_tvl = await asyncio.gather(
            self.chain.get_token_price(NATIVE_TOKEN),
            self.aggregator.total_tvl(),
        )
        return MarketContext(
            native_price=price,
            total_tvl=total_tvl,
            conditions=await self.get_market_conditions(),
            native_symbol=NATIVE_TOKEN,
        )

    async def get_market_conditions(self) -> str:
        return DEFAULT_MARKET_CONDITIONS

    async def get_market_context(self) -> str:
        try:
            return (await self.build_market_context()).render()
        except Exception as e:
            self.log.warning(
                "Market context unavailable: %s",
                e,
                extra={"operation": "build_market_context"},
            )
            return MARKET_CONTEXT_UNAVAILABLE

    async def get_ai_recommendation(self, strategies: list[YieldStrategy]) -> str:
        try:
            market_context = await self.get_market_context()
            return await self.recommender.complete(build_prompt(strategies, market_context))
        except Exception as e:
            self.log.error(
                "Error getting AI recommendation: %s",
                e,
                extra={"operation": "get_ai_recommendation", "strategies": len(strategies)},
            )
            return RECOMMENDATION_UNAVAILABLE

    async def execute_strategy(self, strategy: YieldStrategy) -> str:
        """Submit ``strategy`` to its protocol and return the transaction hash.

        Raises:
            UnsupportedProtocolError: If no registered adapter owns the protocol
        """
        handler = self._dispatch.get(strategy.protocol)
        if handler is None or strategy.protocol not in self.adapters:
            self.log.error(
                "Unsupported protocol %s",
                strategy.protocol,
                extra={"operation": "execute_strategy", "protocol": strategy.protocol},
            )
            raise UnsupportedProtocolError(strategy.protocol)

        try:
            tx_hash = await handler(strategy)
        except Exception as e:
            self.log.error(
                "Error executing strategy: %s",
                e,
                extra={
                    "operation": "execute_strategy",
                    "protocol": strategy.protocol,
                    "token": strategy.token,
                    "amount": strategy.amount,
                },
            )
            raise

        self.log.info(
            "Executed strategy",
            extra={
                "protocol": strategy.protocol,
                "token": strategy.token,
                "amount": strategy.amount,
                "tx_hash": tx_hash,
            },
        )
        return tx_hash

    def break_even_days(self, strategy: YieldStrategy, gas_fees: float) -> int | None:
        """Days until ``strategy`` recovers ``gas_fees`` padded by ``gas_buffer``.

        Returns ``None`` if it never does.
        """
        return break_even_days(
            strategy.amount,
            percent_to_fraction(strategy.estimated_apy),
            gas_fees * self.settings.gas_buffer,
        )
