"""
Rule evaluator: runs every rule in ``rules.RULES`` over a snapshot and
returns the combined, priority-sorted recommendation list.

Usage flow
----------
    evaluator = RuleEvaluator(thresholds=config.rules, rng=random.Random(7))
    recs = evaluator.evaluate(snapshot)

or the module-level shortcut ``evaluate(snapshot)``.

Ordering
--------
Emission order is item order, then rule order 1–7 within an item. The final
list is stable-sorted by priority (high → medium → low), so ties keep their
emission order.

Determinism
-----------
Everything is deterministic except the supplier nudge, which draws from the
injected ``rng``. Pass ``random.Random(seed)`` (or any object with a
``random()`` method) to pin it; the default is a fresh unseeded
``random.Random``. The evaluation date defaults to today (UTC) and can be
pinned with ``as_of``.
"""

from __future__ import annotations

import logging
import random
from datetime import date
from typing import Optional

from inventory_advisor.config import RulesConfig
from inventory_advisor.models.inventory import SnapshotInput, load_snapshot
from inventory_advisor.models.recommendation import Recommendation, sort_by_priority
from inventory_advisor.recommendations.rules import (
    RULES,
    RandomSource,
    RuleContext,
    suppliers_by_category,
)
from inventory_advisor.utils.time_utils import today_utc

logger = logging.getLogger(__name__)


class RuleEvaluator:
    """Deterministic (except for the sampled supplier nudge) rules engine.

    Attributes:
        thresholds: Rule thresholds; defaults to ``RulesConfig()``.
        rng:        Random source for the supplier nudge.
        as_of:      Fixed evaluation date, or ``None`` for today (UTC) at
                    each ``evaluate()`` call.
    """

    def __init__(
        self,
        thresholds: Optional[RulesConfig] = None,
        rng: Optional[RandomSource] = None,
        as_of: Optional[date] = None,
    ) -> None:
        self.thresholds = thresholds or RulesConfig()
        self.rng = rng if rng is not None else random.Random()
        self.as_of = as_of

    def evaluate(self, snapshot: SnapshotInput) -> list[Recommendation]:
        """Evaluate all rules for every item and sort by priority.

        Args:
            snapshot: Inventory records (raw mappings are validated first).

        Returns:
            New list of ``Recommendation``; empty for an empty snapshot.

        Raises:
            SnapshotValidationError: If a raw record is malformed.
        """
        items = load_snapshot(snapshot)
        ctx = RuleContext(
            thresholds=self.thresholds,
            as_of=self.as_of or today_utc(),
            suppliers_by_category=suppliers_by_category(items),
            rng=self.rng,
        )

        emitted: list[Recommendation] = []
        for item in items:
            for rule in RULES:
                rec = rule(item, ctx)
                if rec is not None:
                    emitted.append(rec)

        result = sort_by_priority(emitted)
        logger.debug(
            "RuleEvaluator: %d recommendation(s) for %d item(s) as of %s",
            len(result), len(items), ctx.as_of,
        )
        return result


def evaluate(
    snapshot: SnapshotInput,
    *,
    thresholds: Optional[RulesConfig] = None,
    rng: Optional[RandomSource] = None,
    as_of: Optional[date] = None,
) -> list[Recommendation]:
    """Shortcut for ``RuleEvaluator(thresholds, rng, as_of).evaluate(snapshot)``."""
    return RuleEvaluator(thresholds=thresholds, rng=rng, as_of=as_of).evaluate(snapshot)
