"""
Export helpers for reports and recommendation lists.

All ``export_*`` functions write to disk and return the written ``Path``.
Parent directories are created as needed.

JSON exports use the camelCase wire names (``totalItems``,
``categoryBreakdown``, ``itemId`` ...). CSV exports are flat (no nested
dicts) so they load directly in a spreadsheet or pandas.

``flatten_recommendations_for_export()`` converts recommendation objects
(or their wire dicts) into one flat row per recommendation.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable
from pathlib import Path
from typing import Union

from inventory_advisor.models.recommendation import Recommendation
from inventory_advisor.models.report import Report
from inventory_advisor.reporting.html import render_report_html

RECOMMENDATION_CSV_FIELDS: list[str] = [
    "rank", "id", "itemId", "itemName", "type", "priority",
    "actionRequired", "icon", "message", "detail",
]


def report_to_dict(report: Report) -> dict:
    """Return ``report`` as a JSON-ready dict with camelCase keys."""
    return report.to_wire()


def report_to_json(report: Report) -> str:
    """Serialise ``report`` as pretty-printed JSON text."""
    return json.dumps(report_to_dict(report), indent=2, default=str)


def export_to_json(
    data: dict | list,
    path: Path,
) -> Path:
    """Write ``data`` to a pretty-printed JSON file.

    Args:
        data: Dict or list to serialise.
        path: Destination file path (parent dirs created if missing).

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def export_report_json(report: Report, path: Path) -> Path:
    """Write ``report`` to ``path`` as JSON (``inventory-report.json`` style)."""
    return export_to_json(report_to_dict(report), path)


def export_report_html(report: Report, path: Path) -> Path:
    """Write the printable HTML rendering of ``report`` to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_report_html(report), encoding="utf-8")
    return path


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order.  If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records:
        path.write_text("", encoding="utf-8")
        return path
    cols = fieldnames or list(records[0].keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def flatten_recommendations_for_export(
    recommendations: Iterable[Union[Recommendation, dict]],
) -> list[dict]:
    """Flatten recommendations into CSV-ready rows.

    Each row carries a 1-based ``rank`` (list position) followed by the
    recommendation's wire fields; ``actionRequired`` is rendered as
    ``"yes"`` / ``"no"``.

    Args:
        recommendations: ``Recommendation`` objects or their wire dicts.

    Returns:
        List of flat row dicts keyed by ``RECOMMENDATION_CSV_FIELDS``.
    """
    rows: list[dict] = []
    for rank, rec in enumerate(recommendations, start=1):
        wire = rec.to_wire() if isinstance(rec, Recommendation) else dict(rec)
        rows.append(
            {
                "rank":           rank,
                "id":             wire.get("id", ""),
                "itemId":         wire.get("itemId", ""),
                "itemName":       wire.get("itemName", ""),
                "type":           wire.get("type", ""),
                "priority":       wire.get("priority", ""),
                "actionRequired": "yes" if wire.get("actionRequired") else "no",
                "icon":           wire.get("icon", ""),
                "message":        wire.get("message", ""),
                "detail":         wire.get("detail", ""),
            }
        )
    return rows


def export_recommendations_csv(
    recommendations: Iterable[Union[Recommendation, dict]],
    path: Path,
) -> Path:
    """Write recommendations to ``path`` as a flat CSV."""
    return export_to_csv(
        flatten_recommendations_for_export(recommendations),
        path,
        fieldnames=RECOMMENDATION_CSV_FIELDS,
    )
