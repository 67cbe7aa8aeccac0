from __future__ import annotations

from .base import BaseProtocolAdapter, PoolNotFoundError, YieldInfo


class ThalaAdapter(BaseProtocolAdapter):
    """Adapter for Thala liquid staking."""

    settings_key = "thala"

    @property
    def protocol_name(self) -> str:
        return "Thala"

    async def _fetch_tvl(self) -> float:
        data = await self._get_json()
        return self._tvl_field(data, "totalTVL")

    async def get_yield_info(self, token: str) -> YieldInfo:
        try:
            data = await self._get_json()
            pools = data.get("pools") if isinstance(data, dict) else None
            if not isinstance(pools, list):
                raise ValueError(f"Invalid Thala stats response: {data!r}")

            pool = next(
                (p for p in pools if isinstance(p, dict) and p.get("token") == token),
                None,
            )
            if pool is None:
                raise PoolNotFoundError(self.protocol_name, token)

            staking_apy = self._percent(pool["stakingApy"])
            return self._build_yield_info(
                token,
                apy=staking_apy,
                tvl=float(pool["tvl"]),
                deposit_apy=staking_apy,
                extra_apy=self._percent(pool.get("extraRewardsApy")),
            )
        except Exception as e:
            self._log_yield_failure(token, e)
            raise
