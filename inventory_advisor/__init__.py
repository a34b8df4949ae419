"""
Inventory Advisor — rule-based and advisory inventory recommendations with
aggregated health reports.

Typical use::

    from inventory_advisor.config import load_config
    from inventory_advisor.models.inventory import load_snapshot
    from inventory_advisor.recommendations.evaluator import RuleEvaluator
    from inventory_advisor.reporting.aggregator import build_report

    config = load_config()
    snapshot = load_snapshot(records)
    recs = RuleEvaluator(config.rules).evaluate(snapshot)
    report = build_report(snapshot, recs, config=config.report)
"""

__version__ = "0.1.0"
