"""
Dashboard data loader.

Plain functions with no Streamlit import so they can be unit tested; the
app wraps the file loader in ``st.cache_data`` itself.

``load_snapshot_file()`` never raises for bad input files. It returns a
``SnapshotLoadResult`` whose ``error`` explains what went wrong (missing
file, unreadable file, invalid JSON, or the offending item and field) so the
app can show a message instead of a traceback.

Snapshot files are either a bare JSON array of item records or an object
with an ``"items"`` array.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from inventory_advisor.models.inventory import (
    InventoryItem,
    SnapshotValidationError,
    load_snapshot,
)
from inventory_advisor.models.recommendation import PRIORITY_RANK, Recommendation
from inventory_advisor.utils.time_utils import file_age_hours

logger = logging.getLogger(__name__)

FILTER_TYPES: tuple[str, ...] = ("all", "warning", "danger", "success", "info")

RECOMMENDATIONS_EXPORT_NAME = "inventory-recommendations.json"
REPORT_JSON_EXPORT_NAME     = "inventory-report.json"
REPORT_HTML_EXPORT_NAME     = "inventory-report.html"


@dataclass
class SnapshotLoadResult:
    """Outcome of reading a snapshot file.

    Exactly one of ``items`` (non-None) or ``error`` (non-None) is set.
    """

    path: Path
    items: Optional[list[InventoryItem]] = None
    error: Optional[str] = None
    age_hours: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RecommendationView:
    """Filtered recommendation list plus counts for the widget header."""

    visible: list[Recommendation] = field(default_factory=list)
    total: int = 0
    dismissed: int = 0


def resolve_snapshot_path(path_str: str, root: Path) -> Path:
    """Resolve ``path_str`` relative to ``root`` unless it is absolute."""
    path = Path(path_str).expanduser()
    return path if path.is_absolute() else root / path


def snapshot_file_age_hours(path: Path) -> Optional[float]:
    """Return the age of ``path`` in hours, or ``None`` if it does not exist."""
    if not path.exists():
        return None
    modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
    return file_age_hours(modified)


def load_snapshot_file(path: Path) -> SnapshotLoadResult:
    """Read and validate a snapshot JSON file."""
    if not path.exists():
        return SnapshotLoadResult(path=path, error=f"Snapshot file not found: {path}")

    age = snapshot_file_age_hours(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, OSError) as exc:
        logger.warning("Snapshot %s could not be read: %s", path, exc)
        return SnapshotLoadResult(path=path, error=f"Could not read {path.name}: {exc}", age_hours=age)
    except json.JSONDecodeError as exc:
        logger.warning("Snapshot %s is not valid JSON: %s", path, exc)
        return SnapshotLoadResult(path=path, error=f"Invalid JSON in {path.name}: {exc}", age_hours=age)

    records = raw.get("items") if isinstance(raw, dict) else raw
    if not isinstance(records, list):
        return SnapshotLoadResult(
            path=path,
            error=f"{path.name} must contain a JSON array of items (or an 'items' array).",
            age_hours=age,
        )

    try:
        items = load_snapshot(records)
    except SnapshotValidationError as exc:
        logger.warning("Snapshot %s failed validation: %s", path, exc)
        return SnapshotLoadResult(path=path, error=str(exc), age_hours=age)

    logger.info("Loaded %d item(s) from %s", len(items), path)
    return SnapshotLoadResult(path=path, items=items, age_hours=age)


def filter_recommendations(
    recommendations: Iterable[Recommendation],
    filter_type: str = "all",
    dismissed_ids: Iterable[str] = (),
) -> RecommendationView:
    """Apply the type filter and drop dismissed recommendations.

    Order of the input list is preserved.

    Raises:
        ValueError: If ``filter_type`` is not one of ``FILTER_TYPES``.
    """
    if filter_type not in FILTER_TYPES:
        raise ValueError(f"Unknown filter {filter_type!r}; expected one of {FILTER_TYPES}")

    recs = list(recommendations)
    dismissed = set(dismissed_ids)
    visible = [
        r for r in recs
        if r.id not in dismissed and (filter_type == "all" or r.type == filter_type)
    ]
    return RecommendationView(
        visible=visible,
        total=len(recs),
        dismissed=sum(1 for r in recs if r.id in dismissed),
    )


def snapshot_rows(items: Iterable[InventoryItem]) -> list[dict]:
    """Flatten items into table rows for ``pd.DataFrame``."""
    return [
        {
            "ID":             item.id,
            "Item":           item.item_name,
            "Category":       item.category,
            "Supplier":       item.supplier,
            "Stock":          item.current_stock,
            "Reorder Level":  item.reorder_level,
            "Avg Daily Sales": item.avg_daily_sales,
            "Price":          item.price,
            "Last Restocked": item.last_restocked_date.isoformat(),
        }
        for item in items
    ]


def recommendation_counts(
    recommendations: Iterable[Recommendation],
) -> tuple[list[dict], list[dict]]:
    """Count recommendations per priority and per type for the breakdown charts.

    Priorities come out high, medium, low and types in ``FILTER_TYPES`` order;
    every level is listed, with zero counts included.
    """
    recs = list(recommendations)
    by_priority = [
        {"Priority": p, "Count": sum(1 for r in recs if r.priority == p)}
        for p in sorted(PRIORITY_RANK, key=PRIORITY_RANK.__getitem__)
    ]
    by_type = [
        {"Type": t, "Count": sum(1 for r in recs if r.type == t)}
        for t in FILTER_TYPES[1:]
    ]
    return by_priority, by_type
