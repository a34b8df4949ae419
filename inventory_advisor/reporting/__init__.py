"""
inventory_advisor.reporting — Report aggregation, rendering, and export.

Modules:
  aggregator — build_report(): snapshot + recommendations → Report.
  html       — Printable standalone HTML rendering of a Report.
  export     — JSON / HTML / CSV file export helpers.
"""
