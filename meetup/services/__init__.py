"""Services Layer — imperative shell around the pure core.

Invariants:
    - Services own IO (repositories, DB sessions, locks); decisions come from core/
    - Domain failures raised as MeetupError subclasses, never returned as dicts
"""
