"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or models/
    - Decision functions are pure and deterministic; the shell supplies "now"

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
