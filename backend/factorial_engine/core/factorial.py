"""Arbitrary-Precision Factorial — pure n! over Python ints, plus exact decimal rendering.

Invariants:
    - factorial(0) == 1, factorial(n) == n * factorial(n - 1)
    - Negative or non-integer input raises InvalidInputError (bool is rejected too)
    - to_decimal() never goes through the interpreter's int->str digit limit
      for large values (Python 3.11+ caps str(int) at 4300 digits by default)
    - No side effects: same n always yields the same digits

Design Decisions:
    - Product tree (divide and conquer) instead of a running product: multiplies
      operands of similar size, which is what CPython's Karatsuba path is fast at
    - Recursive split by powers of ten for decimal rendering: each half stays
      under the digit limit and is zero-padded back together
"""

import math

from factorial_engine.core.errors import InvalidInputError, ErrorContext

# Below this span the tree falls back to a plain loop.
_LEAF_SPAN = 16

# 2**8000 has ~2409 digits, comfortably under the 4300 default limit.
_DIRECT_BITS = 8000

_LOG10_2 = math.log10(2)


def _product(lo: int, hi: int) -> int:
    """Product of every integer in the closed interval [lo, hi]."""
    if hi - lo < _LEAF_SPAN:
        result = 1
        for i in range(lo, hi + 1):
            result *= i
        return result
    mid = (lo + hi) // 2
    return _product(lo, mid) * _product(mid + 1, hi)


def validate_input(n: object, what: str = "Factorial input") -> None:
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidInputError(
            f"{what} must be an integer, got {type(n).__name__}",
        )
    if n < 0:
        raise InvalidInputError(
            f"{what} must be non-negative, got {n}",
            ErrorContext(number=n),
        )


def factorial(n: int) -> int:
    """Compute n! exactly.

    Args:
        n: non-negative integer.

    Returns:
        n! as an arbitrary-precision int.

    Raises:
        InvalidInputError: if n is negative or not an int.

    Examples:
        >>> factorial(0)
        1
        >>> factorial(5)
        120
    """
    validate_input(n)
    if n < 2:
        return 1
    return _product(2, n)


def to_decimal(value: int) -> str:
    """Render a non-negative int as base-10 digits, however large it is."""
    validate_input(value, "Decimal value")
    if value.bit_length() <= _DIRECT_BITS:
        return str(value)
    half_digits = int(value.bit_length() * _LOG10_2) // 2
    high, low = divmod(value, 10 ** half_digits)
    return to_decimal(high) + to_decimal(low).zfill(half_digits)


def factorial_digits(n: int) -> str:
    """n! as the decimal string that gets cached."""
    return to_decimal(factorial(n))
