"""
Time and date utilities for the inventory rules engine.

Key concepts:
  - Evaluation date: every rule that looks at calendar age (stale restock)
    measures against a single reference date chosen once per evaluation,
    so one snapshot never straddles midnight mid-run.
  - Report timestamps: ISO-8601 UTC strings, always timezone-aware.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def days_since(
    past_date: date,
    check_date: date,
) -> int:
    """Return the whole number of days from ``past_date`` to ``check_date``.

    Positive: ``past_date`` is in the past.
    Zero: same day.
    Negative: ``past_date`` lies in the future (e.g. a scheduled restock).

    Args:
        past_date: Earlier calendar date, e.g. ``last_restocked_date``.
        check_date: Reference date (usually today).

    Returns:
        ``(check_date - past_date).days``
    """
    return (check_date - past_date).days


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def today_utc() -> date:
    """Return today's calendar date in UTC."""
    return utcnow().date()


def isoformat_utc(moment: Optional[datetime] = None) -> str:
    """Format ``moment`` (default: now) as an ISO-8601 UTC string.

    Naive datetimes are assumed to already be in UTC.

    Returns:
        String such as ``"2026-10-19T08:30:00.123456+00:00"``.
    """
    if moment is None:
        moment = utcnow()
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


def file_age_hours(modified_at: datetime, now: Optional[datetime] = None) -> float:
    """Return hours elapsed since ``modified_at`` (never negative).

    Used by the dashboard freshness badge for the loaded snapshot file.
    """
    if now is None:
        now = utcnow()
    if modified_at.tzinfo is None:
        modified_at = modified_at.replace(tzinfo=timezone.utc)
    delta = (now - modified_at).total_seconds() / 3600.0
    return max(0.0, delta)
