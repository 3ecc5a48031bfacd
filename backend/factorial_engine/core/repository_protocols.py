"""Boundary Protocols — contracts between core logic and the persistence shell.

Invariants:
    - RangeCalculator and FactorialService depend on ResultRepository, never on
      the SQLAlchemy-backed ResultStore directly
    - get() returning None is the NotFound outcome, not an error
    - put() is insert-if-absent: returns False (no-op) when the key exists

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async methods: implementations do IO
"""

from typing import Protocol


class ResultRepository(Protocol):
    """Contract for factorial result persistence — implemented by ResultStore."""
    async def get(self, number: int) -> str | None: ...
    async def put(self, number: int, value: str) -> bool: ...
