"""Pydantic Schemas — validated values handed to and returned from the engine.

Invariants:
    - Schemas validate at the system boundary (what the presentation layer sees)

Design Decisions:
    - Separate from models: schemas are caller contracts, models are persistence
"""
