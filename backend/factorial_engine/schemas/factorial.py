"""Factorial Schemas — results, single-value lookups and range summaries.

Invariants:
    - FactorialResult.value is a non-empty string of decimal digits (no sign,
      separators or exponent)
    - RangeSummary.total == cached + computed + failed == upper - lower + 1
      once a range has completed

Design Decisions:
    - Derived counters as properties rather than stored fields: they can never
      disagree with the underlying counts
"""

from pydantic import BaseModel, Field

DIGITS_PATTERN = r"^[0-9]+$"


class FactorialResult(BaseModel):
    """One memoized computation: number and the decimal digits of number!."""
    number: int = Field(ge=0)
    value: str = Field(pattern=DIGITS_PATTERN)


class FactorialLookup(BaseModel):
    """Outcome of the single-value path."""
    number: int = Field(ge=0)
    value: str = Field(pattern=DIGITS_PATTERN)
    cached: bool


class UnitFailure(BaseModel):
    """A range unit that did not complete."""
    number: int
    code: str
    message: str


class RangeSummary(BaseModel):
    """Aggregate outcome of compute_range once every unit has terminated."""
    lower: int
    upper: int
    cached: int = 0
    computed: int = 0
    failures: list[UnitFailure] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.upper - self.lower + 1

    @property
    def succeeded(self) -> int:
        return self.cached + self.computed

    @property
    def failed(self) -> int:
        return len(self.failures)
