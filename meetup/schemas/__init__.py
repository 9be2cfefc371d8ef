"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (user input, API responses)
    - Id sets are exposed as sorted lists of UUIDs

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
