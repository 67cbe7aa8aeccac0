from __future__ import annotations

from .base import BaseProtocolAdapter, PoolNotFoundError, YieldInfo


class EchoAdapter(BaseProtocolAdapter):
    """Adapter for Echo liquid staking.

    Echo publishes no public stats endpoint; ``adapters.echo.stats_url`` must
    point at a JSON source with ``totalTVL`` and ``pools[]`` entries carrying
    ``token``, ``apy``, ``tvl``, ``baseApy`` and ``bonusApy``.
    """

    settings_key = "echo"

    @property
    def protocol_name(self) -> str:
        return "Echo"

    async def _fetch_tvl(self) -> float:
        data = await self._get_json()
        return self._tvl_field(data, "totalTVL")

    async def get_yield_info(self, token: str) -> YieldInfo:
        try:
            data = await self._get_json()
            pools = data.get("pools") if isinstance(data, dict) else None
            if not isinstance(pools, list):
                raise ValueError(f"Invalid Echo stats response: {data!r}")

            pool = next(
                (p for p in pools if isinstance(p, dict) and p.get("token") == token),
                None,
            )
            if pool is None:
                raise PoolNotFoundError(self.protocol_name, token)

            return self._build_yield_info(
                token,
                apy=self._percent(pool["apy"]),
                tvl=float(pool["tvl"]),
                deposit_apy=self._percent(pool.get("baseApy")),
                extra_apy=self._percent(pool.get("bonusApy")),
            )
        except Exception as e:
            self._log_yield_failure(token, e)
            raise
