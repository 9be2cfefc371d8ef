"""Meetup backend — gatherings, groups and the social CRUD around them.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
