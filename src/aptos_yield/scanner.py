"""Wallet balance scanning over a fixed list of supported tokens."""

from __future__ import annotations

from .clients.aptos import ChainClient
from .constants import APT_COIN_TYPE, NATIVE_TOKEN, ON_CHAIN_DECIMALS
from .domain import TokenBalance
from .logger import get_logger
from .settings import YieldSettings

logger = get_logger(__name__)


class TokenScanner:
    """Reads a wallet's balances for the native token and supported tokens."""

    def __init__(self, settings: YieldSettings, chain: ChainClient):
        self.settings = settings
        self.chain = chain

    async def scan_wallet(self, address: str) -> list[TokenBalance]:
        """Scan ``address`` for token balances with USD values.

        The native token always comes first. Supported tokens whose coin type
        is unknown or whose metadata cannot be found on-chain are skipped.

        Raises:
            Exception: Any balance or price lookup failure, after logging it
        """
        try:
            balances = [await self._native_balance(address)]

            for token in self.settings.supported_tokens:
                coin_type = self.settings.coin_type(token)
                if coin_type is None:
                    logger.debug("No coin type configured for %s, skipping", token)
                    continue

                decimals = await self.chain.get_token_decimals(coin_type)
                if decimals is None:
                    logger.debug("No on-chain metadata for %s, skipping", token)
                    continue

                balance = await self.chain.get_balance(address, coin_type)
                price = await self.chain.get_token_price(token)
                balances.append(
                    TokenBalance(
                        token=token,
                        balance=balance,
                        decimals=decimals,
                        usd_value=balance * price,
                    )
                )
        except Exception as e:
            logger.error(
                "Error scanning wallet: %s",
                e,
                extra={"operation": "scan_wallet", "address": address},
            )
            raise

        logger.debug(
            "Scanned %d balances",
            len(balances),
            extra={"address": address},
        )
        return balances

    async def _native_balance(self, address: str) -> TokenBalance:
        balance = await self.chain.get_balance(address, APT_COIN_TYPE)
        price = await self.chain.get_token_price(NATIVE_TOKEN)
        return TokenBalance(
            token=NATIVE_TOKEN,
            balance=balance,
            decimals=ON_CHAIN_DECIMALS,
            usd_value=balance * price,
        )
