from __future__ import annotations

from decimal import ROUND_DOWN, Decimal

from .constants import ON_CHAIN_DECIMALS


def to_on_chain(amount: float | Decimal | str, decimals: int = ON_CHAIN_DECIMALS) -> int:
    """Convert a human-readable amount to its on-chain fixed-point integer.

    Args:
        amount: Token amount in whole units (e.g. ``1.5`` APT).
        decimals: Fractional digits used on-chain (8 for Aptos coins).

    Returns:
        The amount in base units, truncated toward zero.

    Raises:
        ValueError: If the amount is negative or not a finite number.
    """
    value = Decimal(str(amount))
    if not value.is_finite():
        raise ValueError(f"Amount must be a finite number, got {amount!r}")
    if value < 0:
        raise ValueError(f"Amount must be non-negative, got {amount!r}")
    scaled = (value * (Decimal(10) ** decimals)).quantize(
        Decimal(1), rounding=ROUND_DOWN
    )
    return int(scaled)


def from_on_chain(raw: int, decimals: int = ON_CHAIN_DECIMALS) -> float:
    """Convert an on-chain integer amount to whole units."""
    return float(Decimal(raw) / (Decimal(10) ** decimals))
