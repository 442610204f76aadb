"""Pydantic Schemas — response contracts for API endpoints.

Invariants:
    - JSON keys are camelCase (alias generator); Python attributes stay snake_case
    - Timestamps serialized as ISO-8601 UTC strings ('Z' suffix)

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
    - Request bodies are NOT parsed by Pydantic: they are validated by core/validators.py
      after identity resolution, so an unauthenticated call never reaches body checks
"""
