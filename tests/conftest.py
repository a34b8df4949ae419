"""
Shared pytest fixtures for the Inventory Advisor test suite.

Provides:
  - ``as_of``: A fixed evaluation date so calendar-age rules are stable.
  - ``make_item``: Factory for ``InventoryItem`` with sensible defaults.
  - ``make_record``: Factory for raw snapshot dicts.
  - ``fixed_random`` / ``never_nudge`` / ``always_nudge``: Stub random
    sources returning a fixed value.
  - Sample snapshots used across rule, report and export tests.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Callable

import pytest

from inventory_advisor.models.inventory import InventoryItem

AS_OF = date(2026, 10, 19)


class FixedRandom:
    """Random source that always returns ``value`` and counts its calls."""

    def __init__(self, value: float) -> None:
        self.value = value
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return self.value


def item_record(**overrides: Any) -> dict[str, Any]:
    """Raw snapshot record (as a loader would supply it) with defaults."""
    record: dict[str, Any] = {
        "id": 1,
        "item_name": "Widget",
        "category": "A",
        "supplier": "X",
        "current_stock": 50,
        "reorder_level": 10,
        "avg_daily_sales": 1,
        "price": 20,
        "last_restocked_date": (AS_OF - timedelta(days=10)).isoformat(),
    }
    record.update(overrides)
    return record


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def make_record() -> Callable[..., dict[str, Any]]:
    """Return the raw-record factory (``item_record``)."""
    return item_record


@pytest.fixture
def fixed_random() -> type[FixedRandom]:
    """Return the ``FixedRandom`` class for tests needing a custom value."""
    return FixedRandom


@pytest.fixture
def make_item() -> Callable[..., InventoryItem]:
    """Return a factory building validated ``InventoryItem`` objects."""

    def _make(**overrides: Any) -> InventoryItem:
        return InventoryItem.model_validate(item_record(**overrides))

    return _make


@pytest.fixture
def never_nudge() -> FixedRandom:
    """Random source that never triggers the supplier nudge."""
    return FixedRandom(0.99)


@pytest.fixture
def always_nudge() -> FixedRandom:
    """Random source that always triggers the supplier nudge."""
    return FixedRandom(0.0)


@pytest.fixture
def low_stock_snapshot() -> list[dict[str, Any]]:
    """One item: stock 2 / reorder 10 / sales 1, restocked 50 days ago."""
    return [
        item_record(
            id=1,
            current_stock=2,
            reorder_level=10,
            avg_daily_sales=1,
            price=20,
            category="A",
            supplier="X",
            last_restocked_date=(AS_OF - timedelta(days=50)).isoformat(),
        )
    ]


@pytest.fixture
def mixed_snapshot() -> list[dict[str, Any]]:
    """Four items over two categories and three suppliers."""
    return [
        item_record(id=1, item_name="Mouse", category="Electronics", supplier="TechSource",
                    current_stock=8, reorder_level=20, avg_daily_sales=4.5, price=25),
        item_record(id=2, item_name="Hub", category="Electronics", supplier="GadgetWorld",
                    current_stock=45, reorder_level=15, avg_daily_sales=1.2, price=40),
        item_record(id=3, item_name="Paper", category="Office", supplier="PaperCo",
                    current_stock=3, reorder_level=25, avg_daily_sales=0, price=6),
        item_record(id=4, item_name="Pens", category="Office", supplier="PaperCo",
                    current_stock=140, reorder_level=30, avg_daily_sales=0.4, price=9),
    ]
