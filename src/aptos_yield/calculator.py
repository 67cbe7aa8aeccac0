"""Yield arithmetic.

All functions here take APY as a decimal fraction (``0.05`` for 5%).
Strategies and adapters carry APY in percentage points; convert with
:func:`percent_to_fraction` before calling into this module.
"""

from __future__ import annotations

import math

from .constants import DAYS_PER_YEAR


def percent_to_fraction(apy_percent: float) -> float:
    """Convert an APY in percentage points (``5.0``) to a fraction (``0.05``)."""
    return apy_percent / 100


def daily_yield(amount: float, apy: float) -> float:
    """Expected yield for one day on ``amount`` at ``apy``."""
    return amount * apy / DAYS_PER_YEAR


def compounded_yield(principal: float, apy: float, days: int) -> float:
    """Yield earned over ``days`` with daily compounding, excluding principal."""
    rate = apy / DAYS_PER_YEAR
    return principal * math.pow(1 + rate, days) - principal


def break_even_days(amount: float, apy: float, gas_fees: float) -> int | None:
    """Days of yield needed to recover ``gas_fees``.

    Returns:
        The number of whole days, ``0`` when there is nothing to recover,
        or ``None`` when the position never breaks even (daily yield is zero
        or negative).
    """
    if gas_fees <= 0:
        return 0

    per_day = daily_yield(amount, apy)
    if per_day <= 0 or not math.isfinite(per_day):
        return None

    return math.ceil(gas_fees / per_day)
