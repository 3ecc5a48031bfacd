"""Factorial Service — single-value path: look up, else compute and persist.

Invariants:
    - A cache hit never recomputes
    - A miss is computed, written through put(), and returned in full (never truncated)
    - StorageError is surfaced to the caller immediately, unlike the range path
"""

import asyncio
import logging

from factorial_engine.core.factorial import factorial_digits, validate_input
from factorial_engine.core.repository_protocols import ResultRepository
from factorial_engine.schemas.factorial import FactorialLookup

logger = logging.getLogger(__name__)


class FactorialService:
    """Serves n! for one number, backed by the result store."""

    def __init__(self, store: ResultRepository):
        self._store = store

    async def calculate(self, number: int) -> FactorialLookup:
        validate_input(number)
        cached = await self._store.get(number)
        if cached is not None:
            logger.info(
                f"Factorial of {number} served from cache",
                extra={"number": number, "cached": True},
            )
            return FactorialLookup(number=number, value=cached, cached=True)

        value = await asyncio.to_thread(factorial_digits, number)
        logger.info(
            f"Factorial of {number} computed ({len(value)} digits)",
            extra={"number": number, "cached": False},
        )
        await self._store.put(number, value)
        return FactorialLookup(number=number, value=value, cached=False)
