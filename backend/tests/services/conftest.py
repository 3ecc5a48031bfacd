"""Service test fixtures — file-backed SQLite store per test + in-memory fakes.

Invariants:
    - Every test gets a fresh SQLite database file under tmp_path
    - Schema created through DatabaseSessionManager.create_schema (same path as startup)
    - FakeStore implements the ResultRepository protocol without any IO

Design Decisions:
    - File-backed over :memory:: an in-memory aiosqlite database lives on one shared
      connection, so concurrent sessions would share a transaction. A file gives each
      session its own connection, which is what the concurrency tests exercise
"""

import asyncio

import pytest

from factorial_engine.core.errors import StorageError
from factorial_engine.infrastructure.database import DatabaseSessionManager
from factorial_engine.services.result_store import ResultStore


@pytest.fixture
async def db_manager(tmp_path):
    manager = DatabaseSessionManager(
        f"sqlite+aiosqlite:///{tmp_path / 'factorials.db'}",
    )
    await manager.create_schema()
    yield manager
    await manager.dispose()


@pytest.fixture
async def store(db_manager, tmp_path):
    return ResultStore(db_manager, export_path=str(tmp_path / "results.csv"))


class FakeStore:
    """Dict-backed ResultRepository with injectable failures and latency."""

    def __init__(self, fail_on=(), error=None, delay: float = 0.0):
        self.data: dict[int, str] = {}
        self.put_calls: list[int] = []
        self._fail_on = set(fail_on)
        self._error = error or (lambda n: StorageError(f"disk full writing {n}", "commit"))
        self._delay = delay

    async def get(self, number: int) -> str | None:
        return self.data.get(number)

    async def put(self, number: int, value: str) -> bool:
        self.put_calls.append(number)
        await asyncio.sleep(self._delay)
        if number in self._fail_on:
            raise self._error(number)
        if number in self.data:
            return False
        self.data[number] = value
        return True


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def make_fake_store():
    """FakeStore constructor, for tests that need failures or latency."""
    return FakeStore
