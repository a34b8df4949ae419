"""
Printable HTML rendering of an inventory ``Report``.

``render_report_html(report)`` returns one standalone HTML document (inline
CSS, no external assets) that prints cleanly from a browser:

  Summary            — total items, total value, items below reorder level,
                       health score
  Category Breakdown — Category | Items | Value | Percentage
  Supplier Breakdown — Supplier | Items | Value | Percentage
  Stock Health       — overall score + Category | Health Score |
                       Items Below Reorder | Total Items
  Action Items       — Top Items to Restock (Item | Current Stock |
                       Reorder Level | Days Until Empty) and Slow-Moving
                       Items (Item | Current Stock | Value | Avg. Daily Sales)
  Recommendations    — one block per recommendation, border colour by
                       priority (high red, medium amber, low green)

Every piece of report text is HTML-escaped; item names and supplier names
come from user data.
"""

from __future__ import annotations

from datetime import datetime
from html import escape

from inventory_advisor.models.report import BreakdownEntry, Report

_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333;
           max-width: 1000px; margin: 0 auto; padding: 20px; }
    h1 { color: #2563eb; border-bottom: 1px solid #e5e7eb; padding-bottom: 10px; }
    h2 { color: #4b5563; margin-top: 20px; }
    table { width: 100%; border-collapse: collapse; margin-bottom: 20px; }
    th, td { border: 1px solid #e5e7eb; padding: 8px 12px; text-align: left; }
    th { background-color: #f9fafb; }
    .metrics { display: flex; flex-wrap: wrap; gap: 20px; margin-bottom: 20px; }
    .metric { flex: 1; min-width: 200px; background-color: #f9fafb;
              border-radius: 8px; padding: 15px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); }
    .metric-value { font-size: 24px; font-weight: bold; color: #2563eb; }
    .metric-label { font-size: 14px; color: #6b7280; }
    .recommendation { margin-bottom: 10px; padding: 10px; border-left: 4px solid #ddd; }
    .recommendation.high { border-left-color: #ef4444; background-color: #fee2e2; }
    .recommendation.medium { border-left-color: #f59e0b; background-color: #fef3c7; }
    .recommendation.low { border-left-color: #10b981; background-color: #d1fae5; }
    @media print { body { font-size: 12pt; } }
"""


def format_money(value: float) -> str:
    """``1234.5`` → ``"$1,234.50"``."""
    return f"${value:,.2f}"


def format_number(value: float) -> str:
    """Whole floats without ``.0``; others unchanged."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_report_html(report: Report) -> str:
    """Render ``report`` as a complete printable HTML document."""
    s = report.summary
    parts: list[str] = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        '<meta charset="utf-8">',
        "<title>Inventory Report</title>",
        f"<style>{_STYLE}</style>",
        "</head>",
        "<body>",
        "<h1>Inventory Report</h1>",
        f"<p>Generated on {escape(_display_timestamp(report.generated_at))}</p>",
        "<h2>Summary</h2>",
        '<div class="metrics">',
        _metric(str(s.total_items), "Total Items"),
        _metric(format_money(s.total_value), "Total Value"),
        _metric(str(s.items_below_reorder_level), "Items Below Reorder Level"),
        _metric(f"{s.health_score:.1f}%", "Inventory Health Score"),
        "</div>",
        "<h2>Category Breakdown</h2>",
        _breakdown_table("Category", report.category_breakdown),
        "<h2>Supplier Breakdown</h2>",
        _breakdown_table("Supplier", report.supplier_breakdown),
        "<h2>Stock Health</h2>",
        f"<p>Overall Health: {report.stock_health.overall:.1f}%</p>",
        _table(
            ["Category", "Health Score", "Items Below Reorder", "Total Items"],
            [
                [
                    cat.category,
                    f"{cat.health_percentage:.1f}%",
                    str(cat.below_reorder_count),
                    str(cat.item_count),
                ]
                for cat in report.stock_health.by_category
            ],
        ),
        "<h2>Action Items</h2>",
        "<h3>Top Items to Restock</h3>",
        _table(
            ["Item", "Current Stock", "Reorder Level", "Days Until Empty"],
            [
                [
                    item.item_name,
                    format_number(item.current_stock),
                    format_number(item.reorder_level),
                    "No projected depletion" if item.never_depletes
                    else str(item.days_until_empty),
                ]
                for item in report.action_items.items_to_restock
            ],
        ),
        "<h3>Slow-Moving Items</h3>",
        _table(
            ["Item", "Current Stock", "Value", "Avg. Daily Sales"],
            [
                [
                    item.item_name,
                    format_number(item.current_stock),
                    format_money(item.value),
                    format_number(item.avg_daily_sales),
                ]
                for item in report.action_items.slow_moving_items
            ],
        ),
        "<h2>Recommendations</h2>",
    ]

    if report.recommendations:
        for rec in report.recommendations:
            parts.append(
                f'<div class="recommendation {escape(rec.priority)}">'
                f"<strong>{escape(rec.message)}</strong>"
                f"<p>{escape(rec.detail)}</p>"
                "</div>"
            )
    else:
        parts.append("<p>No recommendations at this time.</p>")

    parts.extend(["</body>", "</html>"])
    return "\n".join(parts)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _display_timestamp(generated_at: str) -> str:
    try:
        return datetime.fromisoformat(generated_at).strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    except ValueError:
        return generated_at


def _metric(value: str, label: str) -> str:
    return (
        '<div class="metric">'
        f'<div class="metric-value">{escape(value)}</div>'
        f'<div class="metric-label">{escape(label)}</div>'
        "</div>"
    )


def _breakdown_table(label: str, entries: list[BreakdownEntry]) -> str:
    return _table(
        [label, "Items", "Value", "Percentage"],
        [
            [e.name, str(e.item_count), format_money(e.value), f"{e.percentage:.1f}%"]
            for e in entries
        ],
    )


def _table(headers: list[str], rows: list[list[str]]) -> str:
    head = "".join(f"<th>{escape(h)}</th>" for h in headers)
    body = "".join(
        "<tr>" + "".join(f"<td>{escape(cell)}</td>" for cell in row) + "</tr>"
        for row in rows
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"
