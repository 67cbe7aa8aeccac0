from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Mapping

from ..adapters.base import BaseProtocolAdapter, PoolNotFoundError, YieldInfo
from ..calculator import daily_yield, percent_to_fraction
from ..domain import YieldStrategy
from ..logger import get_logger
from ..settings import YieldSettings

SMART_CONTRACT_RISK = "Smart contract risk"
LOW_TVL_RISK = "Low TVL risk"
HIGH_APY_RISK = "High APY volatility risk"
GAS_FEE_REQUIREMENT = "Gas fees required for deposit and withdrawal"


def _process_yield_results(
    adapters: list[BaseProtocolAdapter],
    results: Iterable[BaseException | YieldInfo],
    token: str,
    log: logging.Logger,
) -> list[YieldInfo]:
    """Keep successful yield lookups; a failed adapter offers nothing for ``token``.

    Args:
        adapters: Adapters in the order they were gathered
        results: Results from asyncio.gather (may contain exceptions)
        token: Token the yields were requested for
        log: Logger instance

    Returns:
        The successful ``YieldInfo`` results
    """
    yields: list[YieldInfo] = []
    for adapter, result in zip(adapters, results):
        if isinstance(result, YieldInfo):
            yields.append(result)
            continue

        if not isinstance(result, Exception):
            # CancelledError and friends are not ours to swallow
            raise result

        fields = {
            "operation": "get_yield_info",
            "protocol": adapter.protocol_name,
            "token": token,
        }
        if isinstance(result, PoolNotFoundError):
            log.debug("%s has no pool for %s", adapter.protocol_name, token, extra=fields)
        else:
            log.warning(
                "Skipping %s for %s: %s",
                adapter.protocol_name,
                token,
                result,
                extra=fields,
            )
    return yields


def rank_yields(yields: Iterable[YieldInfo]) -> list[YieldInfo]:
    """Order yields by APY, highest first; ties go to the protocol name A→Z."""
    return sorted(yields, key=lambda info: (-info.apy, info.protocol))


class StrategyAggregator:
    """Selects the best yield for a token across all protocol adapters."""

    def __init__(
        self,
        adapters: Mapping[str, BaseProtocolAdapter],
        settings: YieldSettings,
        logger: logging.Logger | None = None,
    ):
        self.adapters = dict(adapters)
        self.settings = settings
        self.log = logger or get_logger(__name__)

    async def collect_yields(self, token: str) -> list[YieldInfo]:
        """Query every adapter concurrently, isolating per-adapter failures."""
        adapters = list(self.adapters.values())
        results = await asyncio.gather(
            *[adapter.get_yield_info(token) for adapter in adapters],
            return_exceptions=True,
        )
        return _process_yield_results(adapters, results, token, self.log)

    async def select_best_strategy(
        self, token: str, balance: float
    ) -> YieldStrategy | None:
        """Build the strategy for the best-yielding protocol for ``token``.

        Returns ``None`` when no adapter offers a yield above
        ``min_yield_difference``.
        """
        ranked = rank_yields(await self.collect_yields(token))
        if not ranked:
            self.log.info("No yield sources for %s", token, extra={"token": token})
            return None

        best = ranked[0]
        if best.apy <= self.settings.min_yield_difference:
            self.log.info(
                "Best APY for %s (%s @ %.4f%%) does not exceed %.4f%%",
                token,
                best.protocol,
                best.apy,
                self.settings.min_yield_difference,
                extra={"token": token, "protocol": best.protocol},
            )
            return None

        return self.build_strategy(best, balance)

    def build_strategy(self, best: YieldInfo, balance: float) -> YieldStrategy:
        """Turn a winning ``YieldInfo`` into a strategy for ``balance`` tokens.

        The amount is capped at ``max_deposit`` when the pool reports one; a
        zero ``max_deposit`` means TVL is unknown and the full balance is used.
        """
        amount = balance
        if best.max_deposit > 0:
            amount = min(balance, best.max_deposit)

        requirements = self.calculate_requirements(best)
        if amount < balance:
            requirements.append(
                f"Amount capped at maximum deposit: {amount} of {balance} {best.token}"
            )

        return YieldStrategy(
            protocol=best.protocol,
            token=best.token,
            amount=amount,
            estimated_apy=best.apy,
            estimated_yield_per_day=daily_yield(amount, percent_to_fraction(best.apy)),
            risks=tuple(self.calculate_risks(best)),
            requirements=tuple(requirements),
        )

    def calculate_risks(self, info: YieldInfo) -> list[str]:
        risks = [SMART_CONTRACT_RISK]
        if info.tvl < self.settings.low_tvl_floor:
            risks.append(LOW_TVL_RISK)
        if info.apy > self.settings.high_apy_threshold:
            risks.append(HIGH_APY_RISK)
        return risks

    def calculate_requirements(self, info: YieldInfo) -> list[str]:
        return [
            f"Minimum deposit: {info.min_deposit} {info.token}",
            f"Maximum deposit: {info.max_deposit} {info.token}",
            GAS_FEE_REQUIREMENT,
        ]

    async def total_tvl(self) -> float:
        """Sum of every adapter's TVL; unavailable TVLs count as zero."""
        tvls = await asyncio.gather(
            *[adapter.get_protocol_tvl() for adapter in self.adapters.values()]
        )
        return float(sum(tvls))
