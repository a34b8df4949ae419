"""Tests for inventory_advisor.recommendations.depletion."""

from __future__ import annotations

import pytest

from inventory_advisor.recommendations.depletion import (
    NEVER_DEPLETES,
    FiniteDays,
    NeverDepletes,
    project_depletion,
    whole_days_or,
)


def test_zero_sales_never_depletes() -> None:
    assert project_depletion(10, 0) is NEVER_DEPLETES


def test_zero_stock_zero_sales_never_depletes() -> None:
    assert isinstance(project_depletion(0, 0), NeverDepletes)


def test_positive_sales_gives_finite_days() -> None:
    projection = project_depletion(10, 4)
    assert projection == FiniteDays(2.5)
    assert projection.whole_days == 2
    assert projection.days_rounded_up == 3


def test_zero_stock_is_zero_days() -> None:
    projection = project_depletion(0, 2)
    assert isinstance(projection, FiniteDays)
    assert projection.days == 0.0
    assert projection.whole_days == 0


def test_exact_division() -> None:
    projection = project_depletion(6, 2)
    assert projection.whole_days == 3
    assert projection.days_rounded_up == 3


@pytest.mark.parametrize(
    "stock, sales, expected",
    [(10, 4, 2), (10, 0, 999), (0, 1, 0)],
)
def test_whole_days_or_sentinel(stock, sales, expected) -> None:
    assert whole_days_or(project_depletion(stock, sales), 999) == expected
