"""Services Layer — imperative shell around the pure core.

Invariants:
    - Every protected operation authorizes through services/access.py
    - Services load rows, call core decisions, then write; they never build HTTP responses

Design Decisions:
    - One module per component (identity, access, lifecycle, roster, media upload)
"""
