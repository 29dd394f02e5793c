"""Core (UI-agnostic) population dashboard logic.

This package contains:
- CSV loading and parsing (text -> PopulationRecord)
- filter normalization and evaluation
- the aggregation engine and insight generation
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
