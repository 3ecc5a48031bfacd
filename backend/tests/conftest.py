"""Root conftest — shared test configuration."""

import os
import sys

import pytest

# Ensure tests never touch a developer's real results database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")


@pytest.fixture
def unlimited_int_digits():
    """Lift the interpreter's int->str digit limit so tests can build reference strings."""
    if not hasattr(sys, "set_int_max_str_digits"):
        yield
        return
    previous = sys.get_int_max_str_digits()
    sys.set_int_max_str_digits(0)
    yield
    sys.set_int_max_str_digits(previous)
