"""
Depletion projection: how many days until stock runs out at the current
average sales rate.

The projection is a tagged variant rather than a float so that a zero
sales rate is an explicit case instead of ``inf`` / ``nan`` leaking into
comparisons:

    FiniteDays(days)  — stock / rate, rate > 0 (days may be 0.0)
    NEVER_DEPLETES    — rate == 0; stock never runs out at this rate

Callers branch on ``isinstance(projection, FiniteDays)``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class FiniteDays:
    """Stock runs out after ``days`` days (fractional)."""

    days: float

    @property
    def whole_days(self) -> int:
        """Completed days before running out (floor)."""
        return math.floor(self.days)

    @property
    def days_rounded_up(self) -> int:
        """Days counted as started (ceil), used for "stock out in N days"."""
        return math.ceil(self.days)


@dataclass(frozen=True)
class NeverDepletes:
    """No projected depletion: the item is not selling."""

    def __repr__(self) -> str:
        return "NEVER_DEPLETES"


NEVER_DEPLETES = NeverDepletes()

Depletion = Union[FiniteDays, NeverDepletes]


def project_depletion(current_stock: float, avg_daily_sales: float) -> Depletion:
    """Project days until ``current_stock`` is exhausted.

    Args:
        current_stock:   Units on hand (non-negative).
        avg_daily_sales: Average units sold per day (non-negative).

    Returns:
        ``FiniteDays(current_stock / avg_daily_sales)`` when sales are
        positive, otherwise ``NEVER_DEPLETES``.
    """
    if avg_daily_sales <= 0:
        return NEVER_DEPLETES
    return FiniteDays(current_stock / avg_daily_sales)


def whole_days_or(projection: Depletion, sentinel: int) -> int:
    """Return floor days for a finite projection, else ``sentinel``."""
    if isinstance(projection, FiniteDays):
        return projection.whole_days
    return sentinel
