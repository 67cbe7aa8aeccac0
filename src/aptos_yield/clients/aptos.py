"""Aptos blockchain client used for balances, metadata, prices and submissions."""

from __future__ import annotations

from typing import Any, Protocol, Sequence

from aptos_sdk.account import Account
from aptos_sdk.account_address import AccountAddress
from aptos_sdk.async_client import ResourceNotFound, RestClient
from aptos_sdk.bcs import Serializer
from aptos_sdk.transactions import EntryFunction, TransactionArgument, TransactionPayload
from aptos_sdk.type_tag import StructTag, TypeTag

from ..constants import APT_COIN_TYPE, ON_CHAIN_DECIMALS
from ..logger import get_logger
from ..settings import YieldSettings
from ..units import from_on_chain
from .http import fetch_json

logger = get_logger(__name__)

# (move type, value), e.g. ("u64", 150000000) or ("address", "0x1")
EntryArgument = tuple[str, Any]

_ENCODERS = {
    "u64": Serializer.u64,
    "u128": Serializer.u128,
    "bool": Serializer.bool,
    "string": Serializer.str,
}


class ChainClient(Protocol):
    """Operations the yield assistant needs from the blockchain."""

    @property
    def account_address(self) -> str: ...

    async def get_balance(self, address: str, coin_type: str = APT_COIN_TYPE) -> float: ...

    async def get_token_decimals(self, coin_type: str) -> int | None: ...

    async def get_token_price(self, token: str) -> float: ...

    async def submit_entry_function(
        self,
        function_id: str,
        type_args: Sequence[str],
        args: Sequence[EntryArgument],
    ) -> str: ...


def encode_argument(argument: EntryArgument) -> TransactionArgument:
    """Encode one entry-function argument for BCS submission."""
    move_type, value = argument
    if move_type == "address":
        return TransactionArgument(AccountAddress.from_str(value), Serializer.struct)
    try:
        encoder = _ENCODERS[move_type]
    except KeyError:
        raise ValueError(f"Unsupported entry function argument type: {move_type}") from None
    return TransactionArgument(value, encoder)


def split_function_id(function_id: str) -> tuple[str, str]:
    """Split ``0xADDR::module::function`` into ``(0xADDR::module, function)``."""
    module, sep, function = function_id.rpartition("::")
    if not sep or "::" not in module:
        raise ValueError(f"Invalid entry function id: {function_id}")
    return module, function


class AptosChainClient:
    """Thin wrapper around the Aptos REST API.

    The signing account is only loaded when a transaction is submitted, so
    read-only analysis works without a private key.
    """

    def __init__(self, settings: YieldSettings, rest_client: RestClient | None = None):
        self.settings = settings
        self.rest_client = rest_client or RestClient(settings.node_url_required)
        self._account: Account | None = None
        self._decimals_cache: dict[str, int] = {}

    @property
    def account(self) -> Account:
        if self._account is None:
            self._account = Account.load_key(self.settings.private_key_required)
        return self._account

    @property
    def account_address(self) -> str:
        if self.settings.account_address:
            return self.settings.account_address
        return str(self.account.address())

    async def get_balance(self, address: str, coin_type: str = APT_COIN_TYPE) -> float:
        """Balance of ``coin_type`` held by ``address``, in whole units.

        Accounts that never registered the coin hold zero.
        """
        decimals = await self.get_token_decimals(coin_type)
        try:
            resource = await self.rest_client.account_resource(
                AccountAddress.from_str(address),
                f"0x1::coin::CoinStore<{coin_type}>",
            )
        except ResourceNotFound:
            logger.debug(
                "No coin store registered",
                extra={"address": address, "coin_type": coin_type},
            )
            return 0.0

        raw = int(resource["data"]["coin"]["value"])
        return from_on_chain(raw, decimals if decimals is not None else ON_CHAIN_DECIMALS)

    async def get_token_decimals(self, coin_type: str) -> int | None:
        """Decimals from the coin's ``CoinInfo``; ``None`` when the coin is unknown."""
        cached = self._decimals_cache.get(coin_type)
        if cached is not None:
            return cached

        issuer = coin_type.split("::", 1)[0]
        try:
            resource = await self.rest_client.account_resource(
                AccountAddress.from_str(issuer),
                f"0x1::coin::CoinInfo<{coin_type}>",
            )
        except ResourceNotFound:
            return None

        decimals = int(resource["data"]["decimals"])
        self._decimals_cache[coin_type] = decimals
        return decimals

    async def get_token_price(self, token: str) -> float:
        """USD price of a token symbol from the configured price API.

        Raises:
            ValueError: If the token has no price id or the response lacks it
        """
        price_id = self.settings.token_price_ids.get(token)
        if price_id is None:
            raise ValueError(f"No price id configured for token {token}")

        data = await fetch_json(
            self.settings.price_api_url,
            params={"ids": price_id, "vs_currencies": "usd"},
            timeout=self.settings.http_timeout,
            max_tries=self.settings.http_max_tries,
        )
        if not isinstance(data, dict) or "usd" not in data.get(price_id, {}):
            raise ValueError(f"Invalid price response for {token}: {data}")

        return float(data[price_id]["usd"])

    async def submit_entry_function(
        self,
        function_id: str,
        type_args: Sequence[str],
        args: Sequence[EntryArgument],
    ) -> str:
        """Sign and submit an entry function call, returning the transaction hash."""
        module, function = split_function_id(function_id)
        payload = EntryFunction.natural(
            module,
            function,
            [TypeTag(StructTag.from_str(type_arg)) for type_arg in type_args],
            [encode_argument(arg) for arg in args],
        )
        signed = await self.rest_client.create_bcs_signed_transaction(
            self.account, TransactionPayload(payload)
        )
        tx_hash = await self.rest_client.submit_bcs_transaction(signed)
        logger.debug("Submitted %s", function_id, extra={"tx_hash": tx_hash})
        return tx_hash

    async def close(self) -> None:
        await self.rest_client.close()
