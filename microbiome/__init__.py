"""Core (UI-agnostic) dashboard logic.

This package contains:
- dataset loading (JSON -> pandas / dataclasses)
- metadata value normalization
- aggregation and top-N species ranking
- selection normalization
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
