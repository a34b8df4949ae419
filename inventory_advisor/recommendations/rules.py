"""
Inventory recommendation rules: seven independent checks, each turning one
``InventoryItem`` into at most one ``Recommendation``.

Rules (evaluated in this order for every item)
----------------------------------------------
    1. restock  : current_stock < reorder_level
                  high if floor(stock / sales) <= 3 days, else medium
    2. slow     : avg_daily_sales < 0.5  AND  stock > 2 × reorder_level
    3. fast     : avg_daily_sales > 3    AND  stock < 1.5 × reorder_level
    4. old      : more than 45 days since last_restocked_date
    5. price    : price > 50  AND  avg_daily_sales < 1  AND  stock > reorder_level
    6. urgent   : 0 < stock / sales < 3 days
    7. supplier : the item's category has exactly one supplier in the
                  snapshot, shown for a random 20% of evaluations

All numeric thresholds come from ``RulesConfig`` (defaults above).

Zero sales
----------
Day projections go through ``project_depletion()``; a zero sales rate gives
``NEVER_DEPLETES``. Rule 1 then stays at medium priority with a "no
projected depletion" detail, rule 2 reports that stock will not sell
through, and rule 6 never fires.

Rule 7 randomness
-----------------
The supplier nudge is deliberately sampled so a single-supplier category
does not produce the same reminder on every refresh. The random source is
``RuleContext.rng`` (anything with ``random() -> float``), consulted only
for single-supplier categories.

Every rule is a pure function of ``(item, context)``; no I/O.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Optional, Protocol

from inventory_advisor.config import RulesConfig
from inventory_advisor.models.inventory import InventoryItem
from inventory_advisor.models.recommendation import Recommendation
from inventory_advisor.recommendations.depletion import (
    FiniteDays,
    project_depletion,
)
from inventory_advisor.utils.time_utils import days_since


class RandomSource(Protocol):
    def random(self) -> float: ...


@dataclass(frozen=True)
class RuleContext:
    """Snapshot-wide inputs shared by every rule in one evaluation.

    Attributes:
        thresholds:              Rule thresholds.
        as_of:                   Evaluation date for calendar-age checks.
        suppliers_by_category:   Distinct suppliers per category across the
                                 whole snapshot.
        rng:                     Random source for the supplier nudge.
    """

    thresholds:            RulesConfig
    as_of:                 date
    suppliers_by_category: dict[str, frozenset[str]]
    rng:                   RandomSource


def suppliers_by_category(snapshot: Sequence[InventoryItem]) -> dict[str, frozenset[str]]:
    """Map each category to the set of distinct suppliers serving it."""
    grouped: dict[str, set[str]] = defaultdict(set)
    for item in snapshot:
        grouped[item.category].add(item.supplier)
    return {cat: frozenset(sups) for cat, sups in grouped.items()}


# ── Rules ─────────────────────────────────────────────────────────────────────

def check_low_stock(item: InventoryItem, ctx: RuleContext) -> Optional[Recommendation]:
    """Rule 1: stock below reorder level → restock warning."""
    if not item.current_stock < item.reorder_level:
        return None

    projection = project_depletion(item.current_stock, item.avg_daily_sales)
    if isinstance(projection, FiniteDays):
        days_until_empty = projection.whole_days
        urgent = days_until_empty <= ctx.thresholds.low_stock_high_priority_days
        detail = (
            f"Will run out in approximately {days_until_empty} days "
            "based on average sales."
        )
    else:
        urgent = False
        detail = "No projected depletion: the item has no recent sales."

    return Recommendation(
        id=f"restock-{item.id}",
        item_id=item.id,
        item_name=item.item_name,
        type="warning",
        priority="high" if urgent else "medium",
        message=(
            f"Restock {item.item_name} - Current stock "
            f"({_num(item.current_stock)}) below reorder level "
            f"({_num(item.reorder_level)})."
        ),
        detail=detail,
        action_required=True,
        icon="alert",
    )


def check_slow_moving(item: InventoryItem, ctx: RuleContext) -> Optional[Recommendation]:
    """Rule 2: low sales with ample stock → consider discounting."""
    t = ctx.thresholds
    if not (
        item.avg_daily_sales < t.slow_moving_max_daily_sales
        and item.current_stock > item.reorder_level * t.slow_moving_stock_multiple
    ):
        return None

    projection = project_depletion(item.current_stock, item.avg_daily_sales)
    if isinstance(projection, FiniteDays):
        detail = (
            f"Current stock of {_num(item.current_stock)} units will last "
            f"{projection.whole_days} days at current sales rate."
        )
    else:
        detail = (
            f"Current stock of {_num(item.current_stock)} units will not sell "
            "through at the current sales rate."
        )

    return Recommendation(
        id=f"slow-{item.id}",
        item_id=item.id,
        item_name=item.item_name,
        type="info",
        priority="low",
        message=f"{item.item_name} is slow-moving - Consider discounting.",
        detail=detail,
        action_required=False,
        icon="chart-down",
    )


def check_fast_moving(item: InventoryItem, ctx: RuleContext) -> Optional[Recommendation]:
    """Rule 3: high sales close to the reorder level → restock more often."""
    t = ctx.thresholds
    if not (
        item.avg_daily_sales > t.fast_moving_min_daily_sales
        and item.current_stock < item.reorder_level * t.fast_moving_stock_multiple
    ):
        return None

    return Recommendation(
        id=f"fast-{item.id}",
        item_id=item.id,
        item_name=item.item_name,
        type="success",
        priority="medium",
        message=f"{item.item_name} is selling rapidly - Adjust restock frequency.",
        detail=(
            "Consider increasing reorder level due to high daily sales "
            f"({_num(item.avg_daily_sales)} units/day)."
        ),
        action_required=False,
        icon="chart-up",
    )


def check_stale_restock(item: InventoryItem, ctx: RuleContext) -> Optional[Recommendation]:
    """Rule 4: no restock for longer than the stale threshold."""
    age_days = days_since(item.last_restocked_date, ctx.as_of)
    if not age_days > ctx.thresholds.stale_restock_days:
        return None

    return Recommendation(
        id=f"old-{item.id}",
        item_id=item.id,
        item_name=item.item_name,
        type="info",
        priority="low",
        message=f"{item.item_name} hasn't been restocked in {age_days} days.",
        detail=(
            f"Last restock was on {item.last_restocked_date.isoformat()}. "
            "Consider checking supplier relationship."
        ),
        action_required=False,
        icon="clock",
    )


def check_price_review(item: InventoryItem, ctx: RuleContext) -> Optional[Recommendation]:
    """Rule 5: expensive, slow-selling, well-stocked → review the price."""
    t = ctx.thresholds
    if not (
        item.price > t.price_review_min_price
        and item.avg_daily_sales < t.price_review_max_daily_sales
        and item.current_stock > item.reorder_level
    ):
        return None

    return Recommendation(
        id=f"price-{item.id}",
        item_id=item.id,
        item_name=item.item_name,
        type="info",
        priority="medium",
        message=f"Consider price adjustment for {item.item_name}.",
        detail=(
            f"High-priced item ({_num(item.price)}) with low daily sales "
            f"({_num(item.avg_daily_sales)})."
        ),
        action_required=False,
        icon="tag",
    )


def check_imminent_stockout(item: InventoryItem, ctx: RuleContext) -> Optional[Recommendation]:
    """Rule 6: projected stockout within the urgent window → expedite."""
    projection = project_depletion(item.current_stock, item.avg_daily_sales)
    if not isinstance(projection, FiniteDays):
        return None
    if not 0 < projection.days < ctx.thresholds.imminent_stockout_days:
        return None

    return Recommendation(
        id=f"urgent-{item.id}",
        item_id=item.id,
        item_name=item.item_name,
        type="danger",
        priority="high",
        message=(
            f"URGENT: {item.item_name} will stock out in "
            f"{projection.days_rounded_up} days."
        ),
        detail=f"Expedite delivery from {item.supplier}.",
        action_required=True,
        icon="alert-triangle",
    )


def check_supplier_concentration(
    item: InventoryItem,
    ctx: RuleContext,
) -> Optional[Recommendation]:
    """Rule 7: single supplier for the whole category, sampled."""
    suppliers = ctx.suppliers_by_category.get(item.category, frozenset())
    if len(suppliers) != 1:
        return None
    if not ctx.rng.random() < ctx.thresholds.supplier_nudge_probability:
        return None

    return Recommendation(
        id=f"supplier-{item.id}",
        item_id=item.id,
        item_name=item.item_name,
        type="info",
        priority="low",
        message=f"Consider diversifying suppliers for {item.category}.",
        detail=(
            f"All {item.category} items are sourced from a single supplier "
            f"({item.supplier})."
        ),
        action_required=False,
        icon="users",
    )


Rule = Callable[[InventoryItem, RuleContext], Optional[Recommendation]]

# Emission order within an item; the priority sort keeps it for ties.
RULES: tuple[Rule, ...] = (
    check_low_stock,
    check_slow_moving,
    check_fast_moving,
    check_stale_restock,
    check_price_review,
    check_imminent_stockout,
    check_supplier_concentration,
)


# ── Helper ────────────────────────────────────────────────────────────────────

def _num(value: float) -> float | int:
    """Render whole floats without a trailing ``.0`` in messages."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
