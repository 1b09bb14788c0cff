"""Core Layer — pure routing and startup rules, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from api/ or infrastructure/
    - All functions are pure and deterministic

Design Decisions:
    - Functional core separated from imperative shell (ADR: ExMA impureim sandwich)
"""
