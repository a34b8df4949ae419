"""
Recommendation output model.

A ``Recommendation`` is one actionable nudge about one inventory item. Rule
output and advisory output share this model; advisory payloads are parsed
through it so both paths hand the dashboard the same validated shape.

Python attributes are snake_case; the wire format (JSON export, advisory
payloads) uses the camelCase names ``itemId``, ``itemName`` and
``actionRequired``. Either spelling is accepted on input.

Recommendations are frozen: they are created fresh on every evaluation and
never mutated afterwards.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

RecommendationType = Literal["warning", "danger", "success", "info"]
Priority = Literal["high", "medium", "low"]
Icon = Literal[
    "alert", "alert-triangle", "chart-up", "chart-down", "clock", "tag", "users",
]

# Sort rank: lower is more urgent.
PRIORITY_RANK: dict[str, int] = {"high": 0, "medium": 1, "low": 2}


class Recommendation(BaseModel):
    """One actionable recommendation about an inventory item.

    Attributes:
        id: Unique within a result set. Rule output uses ``{rule-tag}-{itemId}``.
        item_id: ``id`` of the item this recommendation refers to.
        item_name: Item display name at evaluation time.
        type: Visual category: ``warning``, ``danger``, ``success`` or ``info``.
        priority: ``high``, ``medium`` or ``low``.
        message: Short headline.
        detail: Longer explanation.
        action_required: ``True`` when someone has to act (restock, expedite).
        icon: One of the fixed dashboard icon names.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    item_id: Union[int, str]
    item_name: str
    type: RecommendationType
    priority: Priority
    message: str
    detail: str
    action_required: bool
    icon: Icon

    @field_validator("id", "message")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty.")
        return v.strip()

    @property
    def priority_rank(self) -> int:
        return PRIORITY_RANK[self.priority]

    def to_wire(self) -> dict:
        """Return the camelCase dict used in JSON exports."""
        return self.model_dump(by_alias=True)


def sort_by_priority(recommendations: list[Recommendation]) -> list[Recommendation]:
    """Stable-sort recommendations high → medium → low.

    Ties keep their relative emission order (Python's sort is stable).
    """
    return sorted(recommendations, key=lambda r: PRIORITY_RANK[r.priority])
