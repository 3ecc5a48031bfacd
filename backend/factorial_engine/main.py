"""Factorial Engine — entry point for the presentation layer.

Invariants:
    - lifespan() is the only place that builds a DatabaseSessionManager
    - Logging configured and schema ensured before the engine is handed out
    - The engine is disposed on exit, even if the caller is torn down mid-range;
      each unit's write is its own transaction so the store stays consistent

Design Decisions:
    - Async context manager over module-level singletons: a desktop shell, a test
      or a script each own exactly one engine for as long as they need it
    - FactorialEngine is a thin facade: every call delegates to one service
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, BinaryIO, Iterable, TextIO

from factorial_engine.config import Settings, get_settings
from factorial_engine.infrastructure.database import DatabaseSessionManager
from factorial_engine.infrastructure.observability import setup_logging
from factorial_engine.schemas.factorial import (
    FactorialLookup, FactorialResult, RangeSummary,
)
from factorial_engine.services.factorial_service import FactorialService
from factorial_engine.services.range_calculator import RangeCalculator
from factorial_engine.services.result_store import ResultStore

logger = logging.getLogger(__name__)


class FactorialEngine:
    """Calls the presentation layer makes into the core."""

    def __init__(self, db: DatabaseSessionManager, settings: Settings):
        self.store = ResultStore(db, export_path=settings.export_path)
        self.calculator = RangeCalculator(self.store)
        self.service = FactorialService(self.store)

    async def calculate(self, number: int) -> FactorialLookup:
        return await self.service.calculate(number)

    async def compute_range(self, lower: int, upper: int) -> RangeSummary:
        return await self.calculator.compute_range(lower, upper)

    async def get(self, number: int) -> str | None:
        return await self.store.get(number)

    async def get_many(self, numbers: Iterable[int]) -> dict[int, str]:
        return await self.store.get_many(numbers)

    async def put(self, number: int, value: str) -> bool:
        return await self.store.put(number, value)

    async def list_all(self) -> list[FactorialResult]:
        return await self.store.list_all()

    async def count(self) -> int:
        return await self.store.count()

    async def clear_all(self) -> int:
        return await self.store.clear_all()

    async def export(
        self, sink: str | os.PathLike | TextIO | BinaryIO | None = None,
    ) -> int:
        return await self.store.export(sink)

    async def health_check(self) -> bool:
        return await self.store.health_check()


@asynccontextmanager
async def lifespan(settings: Settings | None = None) -> AsyncIterator[FactorialEngine]:
    """Startup/shutdown lifecycle."""
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout,
        sqlite_busy_timeout=settings.sqlite_busy_timeout,
        sqlite_wal=settings.sqlite_wal,
    )
    try:
        if settings.database_auto_create:
            await db.create_schema()
        logger.info("Factorial engine started")
        yield FactorialEngine(db, settings)
    finally:
        logger.info("Factorial engine shutting down")
        await db.dispose()
