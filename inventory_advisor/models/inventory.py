"""
Inventory snapshot models.

``InventoryItem`` is one stock-keeping record as supplied by whatever loads
the snapshot (the dashboard reads a JSON file; tests build records inline).
Field names match the upstream record shape exactly so raw dicts validate
without renaming.

A snapshot is an ordered ``list[InventoryItem]``. Order carries no meaning
but is preserved so rule output and report breakdowns iterate stably.

``load_snapshot()`` is the validation boundary: malformed numeric fields,
missing fields, bad dates and duplicate ids fail fast with a
``SnapshotValidationError`` naming the offending item and field, instead of
leaking ``NaN`` / ``Infinity`` into the rules.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

ItemId = Union[int, str]

NUMERIC_FIELDS: tuple[str, ...] = (
    "current_stock",
    "reorder_level",
    "avg_daily_sales",
    "price",
)


class SnapshotValidationError(ValueError):
    """Raised when a snapshot record fails validation.

    Attributes:
        item_id: ``id`` of the offending record, or ``None`` if it had none.
        field:   Name of the first offending field (``"id"`` for duplicates).
        index:   Position of the record within the snapshot.
        reason:  Short description of the violation.
    """

    def __init__(
        self,
        item_id: Optional[ItemId],
        field: str,
        index: int,
        reason: str,
    ) -> None:
        self.item_id = item_id
        self.field   = field
        self.index   = index
        self.reason  = reason
        label = f"id={item_id!r}" if item_id is not None else f"record #{index}"
        super().__init__(f"Invalid inventory item ({label}), field '{field}': {reason}")


class InventoryItem(BaseModel):
    """A single stock-keeping record within a snapshot.

    Attributes:
        id: Unique key within the snapshot (integer or string).
        item_name: Display name.
        category: Product category used for breakdowns and supplier checks.
        supplier: Supplier name.
        current_stock: Units on hand (non-negative).
        reorder_level: Restock threshold in units (non-negative).
        avg_daily_sales: Average units sold per day; may be 0.
        price: Unit price (non-negative).
        last_restocked_date: Calendar date of the most recent restock.
    """

    model_config = ConfigDict(frozen=True)

    id: ItemId
    item_name: str
    category: str
    supplier: str
    current_stock: float
    reorder_level: float
    avg_daily_sales: float
    price: float
    last_restocked_date: date

    @field_validator("id", *NUMERIC_FIELDS, mode="before")
    @classmethod
    def reject_booleans(cls, v: Any) -> Any:
        # JSON true/false would otherwise coerce to 1 / 0.
        if isinstance(v, bool):
            raise ValueError(f"must be a number, got boolean {v}.")
        return v

    @field_validator("item_name", "category", "supplier")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty.")
        return v.strip()

    @field_validator(*NUMERIC_FIELDS)
    @classmethod
    def validate_finite_non_negative(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"must be a finite number, got {v}.")
        if v < 0:
            raise ValueError(f"must be non-negative, got {v}.")
        return v

    @property
    def stock_value(self) -> float:
        """Value of stock on hand: ``current_stock * price``."""
        return self.current_stock * self.price

    @property
    def is_below_reorder_level(self) -> bool:
        return self.current_stock < self.reorder_level


SnapshotInput = Iterable[Union[Mapping[str, Any], InventoryItem]]


def load_snapshot(records: SnapshotInput) -> list[InventoryItem]:
    """Validate raw records into an ordered snapshot.

    Args:
        records: Mappings with the ``InventoryItem`` field names, or
            already-built ``InventoryItem`` instances (passed through).

    Returns:
        List of ``InventoryItem`` in input order.

    Raises:
        SnapshotValidationError: On the first malformed record or duplicate id.
    """
    items: list[InventoryItem] = []
    seen_ids: set[ItemId] = set()

    for index, record in enumerate(records):
        if isinstance(record, InventoryItem):
            item = record
        else:
            raw_id = record.get("id") if isinstance(record, Mapping) else None
            try:
                item = InventoryItem.model_validate(record)
            except ValidationError as exc:
                first = exc.errors()[0]
                loc = first.get("loc") or ("record",)
                raise SnapshotValidationError(
                    item_id=raw_id,
                    field=str(loc[0]),
                    index=index,
                    reason=first.get("msg", "invalid value"),
                ) from exc

        if item.id in seen_ids:
            raise SnapshotValidationError(
                item_id=item.id,
                field="id",
                index=index,
                reason="duplicate id within snapshot.",
            )
        seen_ids.add(item.id)
        items.append(item)

    return items
