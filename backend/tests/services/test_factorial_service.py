"""Tests for FactorialService — single-value lookup, compute-on-miss, error surfacing."""

import pytest

from factorial_engine.core.errors import InvalidInputError, StorageError
from factorial_engine.core.factorial import factorial_digits
from factorial_engine.services.factorial_service import FactorialService


async def test_miss_computes_and_persists(store):
    lookup = await FactorialService(store).calculate(10)

    assert lookup.value == "3628800"
    assert lookup.cached is False
    assert await store.get(10) == "3628800"


async def test_hit_is_served_from_cache(store):
    service = FactorialService(store)
    await service.calculate(10)

    lookup = await service.calculate(10)

    assert lookup.cached is True
    assert lookup.value == "3628800"


async def test_cached_value_is_returned_verbatim(fake_store):
    fake_store.data[7] = "5040"
    lookup = await FactorialService(fake_store).calculate(7)
    assert lookup.cached is True
    assert fake_store.put_calls == []


async def test_large_value_is_not_truncated(store):
    lookup = await FactorialService(store).calculate(100)
    assert len(lookup.value) == 158
    assert lookup.value == factorial_digits(100)


async def test_negative_input_rejected_before_lookup(fake_store):
    with pytest.raises(InvalidInputError):
        await FactorialService(fake_store).calculate(-4)
    assert fake_store.put_calls == []


async def test_storage_failure_surfaces_immediately(make_fake_store):
    fake = make_fake_store(fail_on={5})
    with pytest.raises(StorageError):
        await FactorialService(fake).calculate(5)
