"""Tests for factorial schemas — digit validation and derived summary counts."""

import pytest
from pydantic import ValidationError

from factorial_engine.schemas.factorial import (
    FactorialResult, RangeSummary, UnitFailure,
)


def test_result_accepts_digit_string():
    result = FactorialResult(number=5, value="120")
    assert (result.number, result.value) == (5, "120")


@pytest.mark.parametrize("value", ["", "-120", "1,200", "1.2e3", " 120"])
def test_result_rejects_non_digit_values(value):
    with pytest.raises(ValidationError):
        FactorialResult(number=5, value=value)


def test_result_rejects_negative_number():
    with pytest.raises(ValidationError):
        FactorialResult(number=-1, value="1")


def test_summary_derived_counts():
    summary = RangeSummary(
        lower=1, upper=10, cached=4, computed=5,
        failures=[UnitFailure(number=7, code="STORAGE_ERROR", message="boom")],
    )
    assert summary.total == 10
    assert summary.succeeded == 9
    assert summary.failed == 1


def test_summary_defaults_empty():
    summary = RangeSummary(lower=3, upper=3)
    assert summary.total == 1
    assert summary.succeeded == 0
    assert summary.failures == []
