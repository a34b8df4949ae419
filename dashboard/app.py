"""
Inventory Advisor — Streamlit Dashboard
=======================================

Optional local UI. Reads one snapshot JSON file, evaluates recommendations
(rules, or the advisory endpoint when enabled) and renders the report. It
never writes to the snapshot.

Why optional?
-------------
- Streamlit and pandas are not needed to use the engine as a library.
- Everything shown here is also available from ``build_report()`` and the
  export helpers in ``inventory_advisor.reporting.export``.

App structure
-------------
  Sidebar          — snapshot path, advisory toggle, file freshness, clear cache.
  Recommendations  — type filter (all / warning / danger / success / info),
                     dismiss buttons, JSON export of the visible list.
  Report tabs      — Summary, Breakdowns, Stock Health, Recommendations
                     (counts per priority and per type), Action Items,
                     Snapshot, plus JSON / HTML downloads of the full report.

Usage
-----
    pip install -e ".[dashboard]"
    streamlit run dashboard/app.py
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

# ── Ensure project root is importable ────────────────────────────────────────
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import streamlit as st

# ── Must be the first Streamlit call ─────────────────────────────────────────
st.set_page_config(
    page_title="Inventory Advisor",
    layout="wide",
    initial_sidebar_state="expanded",
)

import pandas as pd

from dashboard.data_loader import (
    FILTER_TYPES,
    RECOMMENDATIONS_EXPORT_NAME,
    REPORT_HTML_EXPORT_NAME,
    REPORT_JSON_EXPORT_NAME,
    SnapshotLoadResult,
    filter_recommendations,
    load_snapshot_file,
    recommendation_counts,
    resolve_snapshot_path,
    snapshot_rows,
)
from inventory_advisor.config import load_config
from inventory_advisor.models.recommendation import Recommendation
from inventory_advisor.recommendations.advisory import AdvisoryClient, AdvisoryOutcome
from inventory_advisor.recommendations.evaluator import RuleEvaluator
from inventory_advisor.reporting.aggregator import build_report
from inventory_advisor.reporting.export import report_to_json
from inventory_advisor.reporting.html import format_money, render_report_html
from inventory_advisor.utils.logging import configure_logging

_CONFIG = load_config()
configure_logging(_CONFIG.logging)

_TYPE_BADGE = {
    "danger":  "🔴",
    "warning": "🟠",
    "info":    "🔵",
    "success": "🟢",
}


# ── Cached loaders ────────────────────────────────────────────────────────────

@st.cache_data(ttl=300)
def _load_snapshot(path_str: str, mtime: float) -> SnapshotLoadResult:
    """Cached per (path, mtime) so edits to the file are picked up."""
    return load_snapshot_file(Path(path_str))


def _evaluate(result: SnapshotLoadResult, use_advisory: bool) -> AdvisoryOutcome:
    rules = RuleEvaluator(_CONFIG.rules)
    if use_advisory:
        client = AdvisoryClient(_CONFIG.advisory, rules=rules)
        return asyncio.run(client.advise(result.items))
    return AdvisoryOutcome(
        recommendations=rules.evaluate(result.items),
        source="rules",
        fallback_used=False,
    )


# ── Sidebar ───────────────────────────────────────────────────────────────────

with st.sidebar:
    st.title("Inventory Advisor")
    st.caption("Local dashboard — reads a snapshot file only")
    st.divider()

    snapshot_input = st.text_input(
        "Snapshot file",
        value=_CONFIG.dashboard.snapshot_path,
        help="JSON array of inventory items (relative paths resolve from the project root).",
    )

    use_advisory = st.toggle(
        "Use advisory model",
        value=_CONFIG.dashboard.use_advisory,
        disabled=not _CONFIG.advisory.is_configured,
        help=(
            "Ask the external model for recommendations; falls back to the "
            "built-in rules on any failure. Requires "
            "INVENTORY_ADVISOR_ADVISORY_API_KEY."
        ),
    )

    if st.button("Clear cache", help="Force re-read of the snapshot file."):
        st.cache_data.clear()
        st.session_state.pop("outcome_key", None)
        st.rerun()


snapshot_path = resolve_snapshot_path(snapshot_input, _ROOT)
mtime = snapshot_path.stat().st_mtime if snapshot_path.exists() else 0.0
loaded = _load_snapshot(str(snapshot_path), mtime)


def _freshness_badge(age: float | None, label: str = "") -> None:
    if age is None:
        st.error(f"{label}  NO DATA — snapshot file not found")
    elif age <= _CONFIG.dashboard.freshness_hours:
        st.success(f"{label}  FRESH — {age:.1f}h old")
    else:
        st.warning(f"{label}  STALE — {age:.1f}h old (stock levels may have changed)")


with st.sidebar:
    st.divider()
    _freshness_badge(loaded.age_hours, "Snapshot")

if not loaded.ok:
    st.error(loaded.error)
    st.stop()


# ── Recommendations (evaluated once per snapshot + mode) ─────────────────────

outcome_key = (str(snapshot_path), mtime, use_advisory)
if st.session_state.get("outcome_key") != outcome_key:
    with st.spinner("Generating recommendations..."):
        st.session_state["outcome"] = _evaluate(loaded, use_advisory)
    st.session_state["outcome_key"] = outcome_key
    st.session_state["dismissed"] = set()

outcome: AdvisoryOutcome = st.session_state["outcome"]
dismissed: set[str] = st.session_state.setdefault("dismissed", set())

report = build_report(loaded.items, outcome.recommendations, config=_CONFIG.report)


st.header("Inventory Recommendations")
if outcome.fallback_used and use_advisory:
    st.info(
        "Advisory model unavailable ("
        + ", ".join(outcome.warnings)
        + "); showing rule-based recommendations."
    )
st.caption(f"Source: {outcome.source} — {len(outcome.recommendations)} recommendation(s)")

col_filter, col_export = st.columns([3, 1])
with col_filter:
    filter_type = st.radio(
        "Filter",
        options=list(FILTER_TYPES),
        horizontal=True,
        format_func=str.capitalize,
    )

view = filter_recommendations(outcome.recommendations, filter_type, dismissed)

with col_export:
    st.download_button(
        "Export JSON",
        data=json.dumps([r.to_wire() for r in view.visible], indent=2),
        file_name=RECOMMENDATIONS_EXPORT_NAME,
        mime="application/json",
    )


def _render_recommendation(rec: Recommendation) -> None:
    with st.container(border=True):
        c_msg, c_btn = st.columns([6, 1])
        with c_msg:
            badge = _TYPE_BADGE.get(rec.type, "")
            st.markdown(f"{badge} **{rec.message}**  \n{rec.detail}")
            st.caption(
                f"{rec.item_name} · priority {rec.priority}"
                + (" · action required" if rec.action_required else "")
            )
        with c_btn:
            if st.button("Dismiss", key=f"dismiss-{rec.id}"):
                dismissed.add(rec.id)
                st.rerun()


if not view.visible:
    st.info("No recommendations match the current filter.")
else:
    for rec in view.visible:
        _render_recommendation(rec)

if view.dismissed:
    if st.button(f"Restore {view.dismissed} dismissed"):
        dismissed.clear()
        st.rerun()


# ── Report tabs ───────────────────────────────────────────────────────────────

st.divider()
st.header("Inventory Report")

dl1, dl2, _ = st.columns([1, 1, 4])
with dl1:
    st.download_button(
        "Download report (JSON)",
        data=report_to_json(report),
        file_name=REPORT_JSON_EXPORT_NAME,
        mime="application/json",
    )
with dl2:
    st.download_button(
        "Download report (HTML)",
        data=render_report_html(report),
        file_name=REPORT_HTML_EXPORT_NAME,
        mime="text/html",
    )

(
    tab_summary, tab_breakdown, tab_health, tab_recs, tab_actions, tab_snapshot,
) = st.tabs(
    ["Summary", "Breakdowns", "Stock Health", "Recommendations", "Action Items", "Snapshot"]
)

with tab_summary:
    s = report.summary
    c1, c2, c3, c4, c5 = st.columns(5)
    c1.metric("Total Items", s.total_items)
    c2.metric("Total Value", format_money(s.total_value))
    c3.metric("Below Reorder Level", s.items_below_reorder_level)
    c4.metric("Critical Items", s.critical_items)
    c5.metric("Health Score", f"{s.health_score:.1f}%")
    st.caption(f"Generated at {report.generated_at}")

with tab_breakdown:
    for label, entries in (
        ("Category", report.category_breakdown),
        ("Supplier", report.supplier_breakdown),
    ):
        st.subheader(f"{label} Breakdown")
        if not entries:
            st.info("No items.")
            continue
        df = pd.DataFrame(
            [
                {
                    label:        e.name,
                    "Items":      e.item_count,
                    "Value":      e.value,
                    "Percentage": e.percentage,
                }
                for e in entries
            ]
        )
        st.dataframe(df, use_container_width=True, hide_index=True)
        st.bar_chart(df.set_index(label)["Value"])

with tab_health:
    st.metric("Overall Health", f"{report.stock_health.overall:.1f}%")
    if report.stock_health.by_category:
        df_health = pd.DataFrame(
            [
                {
                    "Category":            c.category,
                    "Health Score":        c.health_percentage,
                    "Items Below Reorder": c.below_reorder_count,
                    "Total Items":         c.item_count,
                }
                for c in report.stock_health.by_category
            ]
        )
        st.dataframe(df_health, use_container_width=True, hide_index=True)
        st.bar_chart(df_health.set_index("Category")["Health Score"])

with tab_recs:
    by_priority, by_type = recommendation_counts(outcome.recommendations)
    st.caption(f"{len(outcome.recommendations)} recommendation(s) from {outcome.source}")
    c_prio, c_type = st.columns(2)
    with c_prio:
        st.subheader("By Priority")
        df_prio = pd.DataFrame(by_priority)
        st.dataframe(df_prio, use_container_width=True, hide_index=True)
        st.bar_chart(df_prio.set_index("Priority")["Count"])
    with c_type:
        st.subheader("By Type")
        df_type = pd.DataFrame(by_type)
        st.dataframe(df_type, use_container_width=True, hide_index=True)
        st.bar_chart(df_type.set_index("Type")["Count"])

with tab_actions:
    actions = report.action_items

    st.subheader("Top Items to Restock")
    if actions.items_to_restock:
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Item":             i.item_name,
                        "Current Stock":    i.current_stock,
                        "Reorder Level":    i.reorder_level,
                        "Days Until Empty": None if i.never_depletes else i.days_until_empty,
                    }
                    for i in actions.items_to_restock
                ]
            ),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.info("No items below reorder level.")

    st.subheader("Slow-Moving Items")
    if actions.slow_moving_items:
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Item":             i.item_name,
                        "Current Stock":    i.current_stock,
                        "Value":            i.value,
                        "Avg. Daily Sales": i.avg_daily_sales,
                    }
                    for i in actions.slow_moving_items
                ]
            ),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.info("No slow-moving items.")

    st.subheader("Fast-Moving Items")
    if actions.fast_moving_items:
        st.dataframe(
            pd.DataFrame(snapshot_rows(actions.fast_moving_items)),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.info("No fast-moving items.")

with tab_snapshot:
    st.caption(f"{len(loaded.items)} item(s) from {loaded.path}")
    st.dataframe(pd.DataFrame(snapshot_rows(loaded.items)), use_container_width=True, hide_index=True)
