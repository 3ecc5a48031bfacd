"""Range Calculator — fan-out/fan-in over [lower, upper] with per-unit failure capture.

Invariants:
    - Invalid bounds raise InvalidRangeError before any unit runs
    - Every unit terminates before compute_range returns
    - A failing unit is counted in the summary; siblings still complete
    - Already-cached numbers are not recomputed

Design Decisions:
    - FakeStore (services/conftest.py) for failure injection and latency;
      real SQLite store for end-to-end range behaviour
"""

import asyncio
import math

import pytest

from factorial_engine.core.errors import InvalidRangeError
from factorial_engine.infrastructure.database import DatabaseSessionManager
from factorial_engine.schemas.factorial import FactorialResult
from factorial_engine.services.range_calculator import RangeCalculator, validate_range
from factorial_engine.services.result_store import ResultStore


# -- validation -------------------------------------------------------------------


@pytest.mark.parametrize("lower, upper", [(7, 5), (-1, 3), (-5, -1), (2, -2)])
async def test_invalid_range_rejected(fake_store, lower, upper):
    calculator = RangeCalculator(fake_store)
    with pytest.raises(InvalidRangeError):
        await calculator.compute_range(lower, upper)
    assert fake_store.put_calls == []


@pytest.mark.parametrize("lower, upper", [(1.0, 3), (1, "3"), (True, 3)])
def test_non_integer_bounds_rejected(lower, upper):
    with pytest.raises(InvalidRangeError):
        validate_range(lower, upper)


# -- against the real store -------------------------------------------------------


async def test_single_value_range_stores_only_that_value(store):
    summary = await RangeCalculator(store).compute_range(3, 3)

    assert summary.computed == 1
    assert summary.cached == 0
    assert summary.failed == 0
    assert await store.list_all() == [FactorialResult(number=3, value="6")]


async def test_range_stores_every_factorial(store):
    summary = await RangeCalculator(store).compute_range(0, 30)

    assert summary.total == 31
    assert summary.computed == 31
    results = await store.list_all()
    assert [r.number for r in results] == list(range(31))
    for r in results:
        assert int(r.value) == math.factorial(r.number)


async def test_repeat_range_is_fully_cached(store):
    calculator = RangeCalculator(store)
    await calculator.compute_range(10, 20)

    summary = await calculator.compute_range(10, 20)

    assert summary.cached == 11
    assert summary.computed == 0
    assert await store.count() == 11


async def test_overlapping_range_only_computes_missing(store):
    await store.put(5, "120")
    await store.put(6, "720")

    summary = await RangeCalculator(store).compute_range(4, 8)

    assert summary.cached == 2
    assert summary.computed == 3
    assert summary.succeeded == 5


async def test_concurrent_overlapping_ranges_store_each_number_once(store):
    calculator = RangeCalculator(store)
    first, second = await asyncio.gather(
        calculator.compute_range(0, 25),
        calculator.compute_range(10, 35),
    )

    assert first.failed == 0 and second.failed == 0
    assert first.computed + second.computed == 36
    assert await store.count() == 36


# -- failure capture --------------------------------------------------------------


async def test_storage_failure_is_reported_not_raised(make_fake_store):
    fake = make_fake_store(fail_on={4})

    summary = await RangeCalculator(fake).compute_range(1, 6)

    assert summary.computed == 5
    assert summary.failed == 1
    failure = summary.failures[0]
    assert failure.number == 4
    assert failure.code == "STORAGE_ERROR"
    assert "disk full" in failure.message
    assert sorted(fake.data) == [1, 2, 3, 5, 6]


async def test_unexpected_unit_error_is_counted(make_fake_store):
    fake = make_fake_store(fail_on={2, 3}, error=lambda n: RuntimeError(f"bad {n}"))

    summary = await RangeCalculator(fake).compute_range(1, 4)

    assert summary.failed == 2
    assert {f.number for f in summary.failures} == {2, 3}
    assert all(f.code == "INTERNAL_ERROR" for f in summary.failures)
    assert summary.succeeded == 2


async def test_barrier_waits_for_every_unit(make_fake_store):
    """Slow writes: nothing is dropped and every unit finished before return."""
    fake = make_fake_store(delay=0.01, fail_on={3})

    summary = await RangeCalculator(fake).compute_range(0, 9)

    assert sorted(fake.put_calls) == list(range(10))
    assert summary.succeeded + summary.failed == summary.total == 10


async def test_lost_insert_race_counts_as_cached(fake_store):
    """put() returning False (someone else wrote first) is a cache hit."""
    original_put = fake_store.put

    async def racing_put(number, value):
        fake_store.data[number] = value
        return await original_put(number, value)

    fake_store.put = racing_put

    summary = await RangeCalculator(fake_store).compute_range(2, 2)

    assert summary.cached == 1
    assert summary.computed == 0


async def test_range_larger_than_pool_has_no_failures(tmp_path):
    """Units queue for a connection; a tiny pool never turns into failures."""
    manager = DatabaseSessionManager(
        f"sqlite+aiosqlite:///{tmp_path / 'small-pool.db'}",
        pool_size=1, max_overflow=0, pool_timeout=0.1,
    )
    await manager.create_schema()
    store = ResultStore(manager)
    try:
        summary = await RangeCalculator(store).compute_range(0, 199)
        assert summary.failed == 0
        assert summary.computed == 200
        assert await store.count() == 200
    finally:
        await manager.dispose()
