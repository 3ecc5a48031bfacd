"""Range Calculator — fans a closed integer interval out into one unit per number.

Invariants:
    - Bounds validated before any unit starts (InvalidRangeError aborts the call)
    - One unit per i in [lower, upper]; units run concurrently in no particular order
    - compute_range() returns only after every unit has terminated (gather barrier)
    - A failing unit never cancels its siblings; every failure lands in the summary
    - Holds no state of its own: the store is the only shared resource

Design Decisions:
    - asyncio.gather(return_exceptions=True) over TaskGroup: a TaskGroup cancels
      siblings on the first error, which would drop units
    - Factorial runs in a worker thread (asyncio.to_thread) so the event loop keeps
      serving store IO while big products multiply
    - A unit whose put() loses an insert race counts as cached: someone else
      already wrote the same digits
"""

import asyncio
import logging
from enum import Enum

from factorial_engine.core.errors import (
    FactorialEngineError, InvalidRangeError, StorageError,
)
from factorial_engine.core.factorial import factorial_digits
from factorial_engine.core.repository_protocols import ResultRepository
from factorial_engine.schemas.factorial import RangeSummary, UnitFailure

logger = logging.getLogger(__name__)


class UnitOutcome(str, Enum):
    CACHED = "cached"
    COMPUTED = "computed"


def validate_range(lower: int, upper: int) -> None:
    """Raise InvalidRangeError unless 0 <= lower <= upper (both ints)."""
    for bound in (lower, upper):
        if isinstance(bound, bool) or not isinstance(bound, int):
            raise InvalidRangeError(lower, upper)
    if lower < 0 or upper < 0 or lower > upper:
        raise InvalidRangeError(lower, upper)


class RangeCalculator:
    """Computes and caches n! for every n in a closed interval."""

    def __init__(self, store: ResultRepository):
        self._store = store

    async def compute_range(self, lower: int, upper: int) -> RangeSummary:
        """Ensure every factorial in [lower, upper] is stored.

        Returns:
            RangeSummary with cached/computed counts and per-unit failures.

        Raises:
            InvalidRangeError: bounds negative or lower > upper.
        """
        validate_range(lower, upper)
        numbers = range(lower, upper + 1)
        outcomes = await asyncio.gather(
            *(self._compute_unit(i) for i in numbers),
            return_exceptions=True,
        )

        summary = RangeSummary(lower=lower, upper=upper)
        for number, outcome in zip(numbers, outcomes):
            if outcome is UnitOutcome.CACHED:
                summary.cached += 1
            elif outcome is UnitOutcome.COMPUTED:
                summary.computed += 1
            else:
                summary.failures.append(_record_failure(number, outcome))

        log = logger.warning if summary.failures else logger.info
        log(
            f"Range [{lower}, {upper}] complete: {summary.computed} computed, "
            f"{summary.cached} cached, {summary.failed} failed",
            extra={
                "lower": lower, "upper": upper,
                "computed": summary.computed, "failed": summary.failed,
            },
        )
        return summary

    async def _compute_unit(self, number: int) -> UnitOutcome:
        if await self._store.get(number) is not None:
            return UnitOutcome.CACHED
        value = await asyncio.to_thread(factorial_digits, number)
        inserted = await self._store.put(number, value)
        return UnitOutcome.COMPUTED if inserted else UnitOutcome.CACHED


def _record_failure(number: int, exc: BaseException) -> UnitFailure:
    if isinstance(exc, FactorialEngineError):
        code, message = exc.code, exc.message
    else:
        code, message = "INTERNAL_ERROR", f"{type(exc).__name__}: {exc}"
    if isinstance(exc, StorageError):
        logger.error(
            f"Range unit {number} failed: {message}",
            extra={"number": number, "error_code": code, "operation": exc.operation},
        )
    else:
        logger.error(
            f"Range unit {number} failed: {message}",
            extra={"number": number, "error_code": code},
            exc_info=exc,
        )
    return UnitFailure(number=number, code=code, message=message)
