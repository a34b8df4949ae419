"""
Report aggregator: snapshot + recommendation list → ``Report``.

Pure and synchronous. The only non-deterministic field is ``generated_at``
(pass ``generated_at=`` to pin it); everything else is a function of the
inputs, so two calls on the same inputs give identical reports.

Metrics
-------
    total_value               Σ current_stock × price                 (2 dp)
    items_below_reorder_level count(current_stock < reorder_level)
    critical_items            count(recommendation.priority == "high")
    health_score              100 − below / total × 100               (1 dp)

Breakdowns group by category / supplier in first-seen order, with
percentage = group item count / total items × 100 (1 dp).

Action items (each capped at ``ReportConfig.action_items_limit``):
    items_to_restock   below reorder level, ascending days until empty
                       (sentinel 999 + never_depletes when sales are 0)
    slow_moving_items  sales < 0.5 and stock > reorder level, by value desc
    fast_moving_items  sales > 2, by sales desc

Empty snapshot
--------------
Health scores are 100.0 (nothing is below its reorder level), breakdowns
and action lists are empty, and nothing divides by zero.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from inventory_advisor.config import ReportConfig
from inventory_advisor.models.inventory import InventoryItem, SnapshotInput, load_snapshot
from inventory_advisor.models.recommendation import Recommendation
from inventory_advisor.models.report import (
    ActionItems,
    BreakdownEntry,
    CategoryHealth,
    Report,
    ReportSummary,
    RestockItem,
    SlowMovingItem,
    StockHealth,
)
from inventory_advisor.recommendations.depletion import (
    NeverDepletes,
    project_depletion,
    whole_days_or,
)
from inventory_advisor.utils.time_utils import isoformat_utc

logger = logging.getLogger(__name__)

# Action-item thresholds. These are the report's own cut-offs and differ
# slightly from the rule thresholds (fast movers: > 2 here, > 3 in rules).
SLOW_MOVING_MAX_DAILY_SALES = 0.5
FAST_MOVING_MIN_DAILY_SALES = 2.0


@dataclass
class _Group:
    count: int = 0
    value: float = 0.0
    below: int = 0


def build_report(
    snapshot: SnapshotInput,
    recommendations: Sequence[Recommendation],
    *,
    config: Optional[ReportConfig] = None,
    generated_at: Optional[datetime] = None,
) -> Report:
    """Aggregate a snapshot and its recommendations into a ``Report``.

    Args:
        snapshot:        Inventory items (raw mappings are validated first).
        recommendations: Recommendations from either source, already
                         priority-sorted by the caller.
        config:          Report limits; defaults to ``ReportConfig()``.
        generated_at:    Timestamp to stamp; defaults to now (UTC).

    Returns:
        A new ``Report``.

    Raises:
        SnapshotValidationError: If a raw record is malformed.
    """
    cfg = config or ReportConfig()
    snapshot = load_snapshot(snapshot)
    total_items = len(snapshot)

    below_count = sum(1 for item in snapshot if item.is_below_reorder_level)
    total_value = sum(item.stock_value for item in snapshot)
    critical = sum(1 for rec in recommendations if rec.priority == "high")
    health = _health_pct(below_count, total_items)

    by_category = _group(snapshot, key="category")
    by_supplier = _group(snapshot, key="supplier")

    report = Report(
        generated_at=isoformat_utc(generated_at),
        summary=ReportSummary(
            total_items=total_items,
            total_value=round(total_value, 2),
            items_below_reorder_level=below_count,
            critical_items=critical,
            health_score=health,
        ),
        category_breakdown=_breakdown(by_category, total_items),
        supplier_breakdown=_breakdown(by_supplier, total_items),
        stock_health=StockHealth(
            overall=health,
            by_category=[
                CategoryHealth(
                    category=name,
                    health_percentage=_health_pct(grp.below, grp.count),
                    item_count=grp.count,
                    below_reorder_count=grp.below,
                )
                for name, grp in by_category.items()
            ],
        ),
        action_items=ActionItems(
            items_to_restock=_items_to_restock(snapshot, cfg),
            slow_moving_items=_slow_moving_items(snapshot, cfg),
            fast_moving_items=_fast_moving_items(snapshot, cfg),
        ),
        recommendations=list(recommendations[: cfg.recommendations_limit]),
    )

    logger.debug(
        "Report built: %d item(s), %d below reorder, health %.1f",
        total_items, below_count, health,
    )
    return report


# ── Helpers ───────────────────────────────────────────────────────────────────

def _health_pct(below: int, total: int) -> float:
    if total == 0:
        return 100.0
    return round(100.0 - (below / total * 100.0), 1)


def _group(snapshot: Sequence[InventoryItem], key: str) -> dict[str, _Group]:
    groups: dict[str, _Group] = {}
    for item in snapshot:
        grp = groups.setdefault(getattr(item, key), _Group())
        grp.count += 1
        grp.value += item.stock_value
        if item.is_below_reorder_level:
            grp.below += 1
    return groups


def _breakdown(groups: dict[str, _Group], total_items: int) -> list[BreakdownEntry]:
    if total_items == 0:
        return []
    return [
        BreakdownEntry(
            name=name,
            item_count=grp.count,
            value=round(grp.value, 2),
            percentage=round(grp.count / total_items * 100.0, 1),
        )
        for name, grp in groups.items()
    ]


def _items_to_restock(
    snapshot: Sequence[InventoryItem],
    cfg: ReportConfig,
) -> list[RestockItem]:
    rows: list[RestockItem] = []
    for item in snapshot:
        if not item.is_below_reorder_level:
            continue
        projection = project_depletion(item.current_stock, item.avg_daily_sales)
        rows.append(
            RestockItem(
                **item.model_dump(),
                days_until_empty=whole_days_or(projection, cfg.no_depletion_days),
                never_depletes=isinstance(projection, NeverDepletes),
            )
        )
    rows.sort(key=lambda r: r.days_until_empty)
    return rows[: cfg.action_items_limit]


def _slow_moving_items(
    snapshot: Sequence[InventoryItem],
    cfg: ReportConfig,
) -> list[SlowMovingItem]:
    slow = [
        item for item in snapshot
        if item.avg_daily_sales < SLOW_MOVING_MAX_DAILY_SALES
        and item.current_stock > item.reorder_level
    ]
    # Ascending then reversed: equal values list the later snapshot item first.
    slow.sort(key=lambda item: item.stock_value)
    slow.reverse()
    return [
        SlowMovingItem(**item.model_dump(), value=round(item.stock_value, 2))
        for item in slow[: cfg.action_items_limit]
    ]


def _fast_moving_items(
    snapshot: Sequence[InventoryItem],
    cfg: ReportConfig,
) -> list[InventoryItem]:
    fast = [item for item in snapshot if item.avg_daily_sales > FAST_MOVING_MIN_DAILY_SALES]
    fast.sort(key=lambda item: item.avg_daily_sales, reverse=True)
    return fast[: cfg.action_items_limit]
