"""API Layer — FastAPI routes, dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Every response carries an "ok" flag; failures add a machine-readable "error" code

Design Decisions:
    - Thin routes delegate to services (ADR: impureim sandwich)
"""
