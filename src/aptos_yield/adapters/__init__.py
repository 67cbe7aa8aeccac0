from __future__ import annotations

from ..clients.aptos import ChainClient
from ..settings import YieldSettings
from .amnis import AmnisAdapter
from .base import (
    BaseProtocolAdapter,
    PoolNotFoundError,
    UnsupportedOperationError,
    YieldInfo,
)
from .echo import EchoAdapter
from .joule import JouleAdapter
from .thala import ThalaAdapter

ADAPTER_REGISTRY: dict[str, type[BaseProtocolAdapter]] = {
    "Joule": JouleAdapter,
    "Thala": ThalaAdapter,
    "Amnis": AmnisAdapter,
    "Echo": EchoAdapter,
}

PROTOCOL_ADAPTERS: list[type[BaseProtocolAdapter]] = list(ADAPTER_REGISTRY.values())


def get_adapter_class(protocol: str) -> type[BaseProtocolAdapter]:
    """Get adapter class by protocol identifier.

    Args:
        protocol: Protocol identifier (case-insensitive)

    Returns:
        Adapter class

    Raises:
        ValueError: If protocol is not recognized
    """
    by_lower = {name.lower(): cls for name, cls in ADAPTER_REGISTRY.items()}
    try:
        return by_lower[protocol.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown protocol '{protocol}'. "
            f"Available: {', '.join(ADAPTER_REGISTRY.keys())}"
        ) from None


def build_adapters(
    settings: YieldSettings, chain: ChainClient
) -> dict[str, BaseProtocolAdapter]:
    """Instantiate the enabled adapters, keyed by protocol identifier."""
    adapters: dict[str, BaseProtocolAdapter] = {}
    for protocol in settings.enabled_protocols:
        adapter = get_adapter_class(protocol)(settings, chain)
        adapters[adapter.protocol_name] = adapter
    return adapters


__all__ = [
    "ADAPTER_REGISTRY",
    "PROTOCOL_ADAPTERS",
    "AmnisAdapter",
    "BaseProtocolAdapter",
    "EchoAdapter",
    "JouleAdapter",
    "PoolNotFoundError",
    "ThalaAdapter",
    "UnsupportedOperationError",
    "YieldInfo",
    "build_adapters",
    "get_adapter_class",
]
