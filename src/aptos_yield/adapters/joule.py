from __future__ import annotations

from typing import Any

from ..clients.aptos import EntryArgument
from ..constants import JOULE_POSITION_NAME, NATIVE_TOKEN
from .base import BaseProtocolAdapter, PoolNotFoundError, YieldInfo


class JouleAdapter(BaseProtocolAdapter):
    """Adapter for Joule lending markets.

    The market endpoint returns ``{"data": [pool, ...]}`` where each pool is
    keyed by the coin type in ``asset.assetName`` and carries
    ``depositApy``, ``extraAPY.depositAPY``, ``borrowApy`` and ``marketSize``.
    Deposits lend into a named position.
    """

    settings_key = "joule"

    @property
    def protocol_name(self) -> str:
        return "Joule"

    async def _fetch_pools(self) -> list[dict[str, Any]]:
        data = await self._get_json()
        pools = data.get("data") if isinstance(data, dict) else data
        if not isinstance(pools, list):
            raise ValueError(f"Invalid Joule market response: {data!r}")
        return [pool for pool in pools if isinstance(pool, dict)]

    def _find_pool(self, pools: list[dict[str, Any]], token: str) -> dict[str, Any]:
        candidates = {token.lower()}
        coin_type = self.config.coin_type(token)
        if coin_type:
            candidates.add(coin_type.lower())

        for pool in pools:
            asset = pool.get("asset") or {}
            name = str(asset.get("assetName", "")).lower()
            if name in candidates:
                return pool
        raise PoolNotFoundError(self.protocol_name, token)

    async def _fetch_tvl(self) -> float:
        pool = self._find_pool(await self._fetch_pools(), NATIVE_TOKEN)
        if "marketSize" not in pool:
            raise ValueError("Joule APT market is missing marketSize")
        return float(pool["marketSize"])

    async def get_yield_info(self, token: str) -> YieldInfo:
        try:
            pool = self._find_pool(await self._fetch_pools(), token)
            if "depositApy" not in pool or "marketSize" not in pool:
                raise ValueError(f"Joule market for {token} is missing fields: {pool!r}")

            deposit_apy = self._percent(pool["depositApy"])
            extra_apy = self._percent((pool.get("extraAPY") or {}).get("depositAPY"))
            return self._build_yield_info(
                token,
                apy=deposit_apy + extra_apy,
                tvl=float(pool["marketSize"]),
                deposit_apy=deposit_apy,
                borrow_apy=self._percent(pool.get("borrowApy")),
                extra_apy=extra_apy,
            )
        except Exception as e:
            self._log_yield_failure(token, e)
            raise

    async def stake(self, amount: float) -> str:
        return await self.deposit(NATIVE_TOKEN, amount)

    async def deposit(self, token: str, amount: float) -> str:
        return await self._submit("deposit", amount, token=token)

    def _type_arguments(self, operation: str, token: str | None) -> list[str]:
        coin_type = self.config.coin_type(token or NATIVE_TOKEN)
        if coin_type is None:
            raise ValueError(f"No coin type configured for token {token}")
        return [coin_type]

    def _entry_arguments(
        self, operation: str, raw_amount: int, token: str | None
    ) -> list[EntryArgument]:
        return [
            ("string", JOULE_POSITION_NAME),
            ("u64", raw_amount),
            ("bool", True),
        ]
