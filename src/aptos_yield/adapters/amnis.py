from __future__ import annotations

from ..clients.aptos import EntryArgument
from ..constants import NATIVE_TOKEN
from .base import BaseProtocolAdapter, PoolNotFoundError, YieldInfo


class AmnisAdapter(BaseProtocolAdapter):
    """Adapter for Amnis Finance APT staking.

    Amnis runs a single staking pool, so only the native token has yield.
    Stake and unstake pay out to the signing account.
    """

    settings_key = "amnis"

    @property
    def protocol_name(self) -> str:
        return "Amnis"

    async def _fetch_tvl(self) -> float:
        data = await self._get_json()
        return self._tvl_field(data, "totalStaked")

    async def get_yield_info(self, token: str) -> YieldInfo:
        try:
            if token != NATIVE_TOKEN:
                raise PoolNotFoundError(self.protocol_name, token)

            data = await self._get_json()
            if not isinstance(data, dict) or "stakingApy" not in data or "totalStaked" not in data:
                raise ValueError(f"Invalid Amnis stats response: {data!r}")

            staking_apy = self._percent(data["stakingApy"])
            return self._build_yield_info(
                NATIVE_TOKEN,
                apy=staking_apy,
                tvl=float(data["totalStaked"]),
                deposit_apy=staking_apy,
                extra_apy=self._percent(data.get("extraRewardsApy")),
            )
        except Exception as e:
            self._log_yield_failure(token, e)
            raise

    def _entry_arguments(
        self, operation: str, raw_amount: int, token: str | None
    ) -> list[EntryArgument]:
        return [("u64", raw_amount), ("address", self.chain.account_address)]
