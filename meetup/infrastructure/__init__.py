"""Infrastructure Layer — database access, repositories and cross-cutting concerns.

Invariants:
    - Infrastructure never decides domain outcomes; it reads and writes
    - All SQLAlchemy failures mapped to StoreError
"""
