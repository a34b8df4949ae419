"""
Aggregated inventory report models.

A ``Report`` is derived on demand from a snapshot plus a recommendation list
by ``inventory_advisor.reporting.aggregator.build_report``. It owns nothing
and is never persisted; JSON export and the printable HTML view both read it.

Serialisation uses camelCase keys (``totalItems``, ``categoryBreakdown``,
``daysUntilEmpty`` ...). Inventory fields carried inside the action-item
lists keep their snapshot names (``item_name``, ``current_stock`` ...) so an
exported row looks like the record it came from plus its annotations.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from inventory_advisor.models.inventory import InventoryItem
from inventory_advisor.models.recommendation import Recommendation


class _ReportModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ReportSummary(_ReportModel):
    """Headline metrics.

    Attributes:
        total_items: Number of items in the snapshot.
        total_value: Σ current_stock × price, rounded to 2 decimals.
        items_below_reorder_level: Count of items with stock under threshold.
        critical_items: Count of high-priority recommendations.
        health_score: Percent of items at/above reorder level (1 decimal);
            100.0 for an empty snapshot.
    """

    total_items: int
    total_value: float
    items_below_reorder_level: int
    critical_items: int
    health_score: float


class BreakdownEntry(_ReportModel):
    """One group in the category or supplier breakdown."""

    name: str
    item_count: int
    value: float
    percentage: float


class CategoryHealth(_ReportModel):
    category: str
    health_percentage: float
    item_count: int
    below_reorder_count: int


class StockHealth(_ReportModel):
    overall: float
    by_category: list[CategoryHealth] = []


class RestockItem(InventoryItem):
    """A below-reorder item annotated with its projected days until empty.

    ``days_until_empty`` holds the sentinel (999 by default) when the item
    has no sales; ``never_depletes`` tells that case apart from a real count.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    days_until_empty: int = Field(alias="daysUntilEmpty")
    never_depletes: bool = Field(default=False, alias="neverDepletes")


class SlowMovingItem(InventoryItem):
    """A slow seller annotated with the value of its stock on hand."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    value: float


class ActionItems(_ReportModel):
    items_to_restock: list[RestockItem] = []
    slow_moving_items: list[SlowMovingItem] = []
    fast_moving_items: list[InventoryItem] = []


class Report(_ReportModel):
    """Full inventory health report.

    Attributes:
        generated_at: ISO-8601 UTC timestamp of report construction.
        summary: Headline metrics.
        category_breakdown: Item count / value share per category.
        supplier_breakdown: Item count / value share per supplier.
        stock_health: Overall and per-category health scores.
        action_items: Bounded restock / slow / fast lists.
        recommendations: First N recommendations in the order received.
    """

    generated_at: str
    summary: ReportSummary
    category_breakdown: list[BreakdownEntry] = []
    supplier_breakdown: list[BreakdownEntry] = []
    stock_health: StockHealth
    action_items: ActionItems = ActionItems()
    recommendations: list[Recommendation] = []

    def to_wire(self) -> dict:
        """Return the JSON-ready camelCase dict (dates as ISO strings)."""
        return self.model_dump(mode="json", by_alias=True)
