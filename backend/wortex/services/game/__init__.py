"""Game domain services: tokenizing, word pool, assembly, scoring, validation.

This package contains pure(ish) domain logic that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from core game mechanics. Nothing in here touches Flask or the database.
"""
