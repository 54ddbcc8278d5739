"""Core (UI-agnostic) ad performance dashboard logic.

This package contains:
- value coercion and column mapping (CSV cells -> canonical rows)
- ingestion, normalization and session state
- filter predicates and metric aggregation
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
