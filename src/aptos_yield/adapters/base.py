from __future__ import annotations

import asyncio
import logging
import math
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, ClassVar

from ..clients.aptos import ChainClient, EntryArgument
from ..clients.http import fetch_json
from ..constants import (
    DEFAULT_MIN_DEPOSIT,
    MAX_DEPOSIT_TVL_FRACTION,
    PROTOCOL_FUNCTIONS,
)
from ..logger import get_logger
from ..settings import ProtocolEndpointSettings, YieldSettings
from ..units import to_on_chain

logger = get_logger(__name__)


class PoolNotFoundError(LookupError):
    """Raised when a protocol has no pool or market for the requested token."""

    def __init__(self, protocol: str, token: str):
        super().__init__(f"{protocol}: pool not found for token {token}")
        self.protocol = protocol
        self.token = token


class UnsupportedOperationError(NotImplementedError):
    """Raised when a protocol does not offer the requested operation."""

    def __init__(self, protocol: str, operation: str):
        super().__init__(f"{protocol} does not support {operation}")
        self.protocol = protocol
        self.operation = operation


@dataclass(frozen=True)
class YieldInfo:
    """Yield data for one (protocol, token) pair at retrieval time.

    APY fields are in percentage points.
    """

    protocol: str
    token: str
    apy: float
    tvl: float
    min_deposit: float
    max_deposit: float
    deposit_apy: float | None = None
    borrow_apy: float | None = None
    extra_apy: float | None = None


class BaseProtocolAdapter(ABC):
    """Abstract base class for protocol adapters.

    Failure contract:
        - ``get_protocol_tvl`` never raises; failures are logged and reported
          as ``0.0``, which callers must read as "unknown".
        - ``get_yield_info`` raises ``PoolNotFoundError`` when the protocol
          has no pool for the token and lets transport/parse errors through.
        - ``stake``/``unstake``/``deposit`` log and re-raise any failure from
          the transaction layer.
    """

    settings_key: ClassVar[str]

    def __init__(self, config: YieldSettings, chain: ChainClient):
        """Initialize the adapter with configuration.

        Args:
            config: Application settings
            chain: Blockchain client used for submissions
        """
        self.config = config
        self.chain = chain
        self.endpoint: ProtocolEndpointSettings = config.adapters.for_protocol(
            self.settings_key
        )

    @property
    @abstractmethod
    def protocol_name(self) -> str:
        """Return the protocol identifier of this adapter."""
        ...

    @abstractmethod
    async def _fetch_tvl(self) -> float:
        """Read the protocol's total value locked from its data source."""
        ...

    @abstractmethod
    async def get_yield_info(self, token: str) -> YieldInfo:
        """Fetch yield data for ``token``."""
        ...

    async def get_protocol_tvl(self) -> float:
        """Total value locked, or ``0.0`` when it cannot be determined."""
        try:
            async with self._deadline():
                tvl = float(await self._fetch_tvl())
        except Exception as e:
            logger.error(
                "Error fetching %s TVL: %s",
                self.protocol_name,
                e,
                extra={"operation": "get_protocol_tvl", "protocol": self.protocol_name},
            )
            return 0.0

        if not math.isfinite(tvl) or tvl < 0:
            logger.warning(
                "Discarding invalid %s TVL %r",
                self.protocol_name,
                tvl,
                extra={"operation": "get_protocol_tvl", "protocol": self.protocol_name},
            )
            return 0.0
        return tvl

    async def stake(self, amount: float) -> str:
        return await self._submit("stake", amount)

    async def unstake(self, amount: float) -> str:
        return await self._submit("unstake", amount)

    async def deposit(self, token: str, amount: float) -> str:
        raise UnsupportedOperationError(self.protocol_name, "deposit")

    @asynccontextmanager
    async def _deadline(self) -> AsyncIterator[None]:
        timeout_s = self.config.adapter_timeout_seconds
        if timeout_s is None or timeout_s <= 0:
            yield
        else:
            async with asyncio.timeout(timeout_s):
                yield

    async def _get_json(self) -> Any:
        url = self.endpoint.stats_url
        if not url:
            raise ValueError(f"{self.protocol_name} stats_url must be configured")
        async with self._deadline():
            return await fetch_json(
                url,
                timeout=self.config.http_timeout,
                max_tries=self.config.http_max_tries,
            )

    def _log_yield_failure(self, token: str, error: Exception) -> None:
        # Missing pools are expected for most (protocol, token) pairs
        level = logging.DEBUG if isinstance(error, PoolNotFoundError) else logging.ERROR
        logger.log(
            level,
            "Error fetching %s yield info: %s",
            self.protocol_name,
            error,
            extra={
                "operation": "get_yield_info",
                "protocol": self.protocol_name,
                "token": token,
            },
        )

    def _tvl_field(self, data: Any, key: str) -> float:
        """Read a TVL total from a stats payload; absent or null fields are errors."""
        if not isinstance(data, dict) or data.get(key) is None:
            raise ValueError(f"{self.protocol_name} stats response is missing {key}")
        return float(data[key])

    def _percent(self, value: Any) -> float:
        """Normalise a source APY value to percentage points."""
        return float(value or 0) * self.endpoint.apy_scale

    def _build_yield_info(
        self,
        token: str,
        apy: float,
        tvl: float,
        **breakdown: float | None,
    ) -> YieldInfo:
        """Assemble a ``YieldInfo`` with the protocol-wide deposit bounds."""
        return YieldInfo(
            protocol=self.protocol_name,
            token=token,
            apy=apy,
            tvl=tvl,
            min_deposit=DEFAULT_MIN_DEPOSIT,
            max_deposit=tvl * MAX_DEPOSIT_TVL_FRACTION,
            **breakdown,
        )

    def _type_arguments(self, operation: str, token: str | None) -> list[str]:
        return []

    def _entry_arguments(
        self, operation: str, raw_amount: int, token: str | None
    ) -> list[EntryArgument]:
        return [("u64", raw_amount)]

    async def _submit(
        self, operation: str, amount: float, token: str | None = None
    ) -> str:
        function_id = PROTOCOL_FUNCTIONS[self.protocol_name][operation]  # type: ignore[literal-required]
        if function_id is None:
            raise UnsupportedOperationError(self.protocol_name, operation)

        log_fields = {
            "operation": operation,
            "protocol": self.protocol_name,
            "amount": amount,
        }
        if token is not None:
            log_fields["token"] = token

        try:
            raw_amount = to_on_chain(amount)
            tx_hash = await self.chain.submit_entry_function(
                function_id,
                self._type_arguments(operation, token),
                self._entry_arguments(operation, raw_amount, token),
            )
        except Exception as e:
            logger.error(
                "Error during %s %s: %s",
                self.protocol_name,
                operation,
                e,
                extra=log_fields,
            )
            raise

        logger.info(
            "Successfully completed %s %s",
            self.protocol_name,
            operation,
            extra={**log_fields, "tx_hash": tx_hash},
        )
        return tx_hash
