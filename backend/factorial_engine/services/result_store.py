"""Result Store — persistent, concurrency-safe cache of factorial results.

Invariants:
    - Sole owner of persisted state; every mutation goes through put() or clear_all()
    - put() is insert-if-absent: an existing entry is never overwritten
    - Concurrent put() calls for one number serialize on a per-key lock, and the
      INSERT itself is ON CONFLICT DO NOTHING, so exactly one write wins even
      across processes sharing the database
    - Each put() is a single-statement transaction: a failed write leaves no row
    - get() returns None on a miss (NotFound is an outcome, not an error)
    - Every persistence failure surfaces as StorageError (ExportError for export)

Design Decisions:
    - Key-scoped asyncio.Lock, dropped once no waiter holds it: unrelated keys
      never contend in-process, and the lock table does not grow with the cache
    - Dialect-native upsert; only SQLite and PostgreSQL are supported, any other
      dialect is refused when the store is built
    - Export renders in core, writes here: temp file + os.replace so a reader
      never sees a half-written CSV
"""

import asyncio
import io
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Iterable, TextIO

from pydantic import ValidationError
from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from factorial_engine.core.csv_export import render_csv
from factorial_engine.core.errors import (
    ErrorContext, ExportError, InvalidInputError, StorageError,
)
from factorial_engine.infrastructure.database import DatabaseSessionManager
from factorial_engine.models.factorial_result import FactorialResultRecord
from factorial_engine.schemas.factorial import FactorialResult

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class ResultStore:
    """Persistent number -> factorial digits cache."""

    def __init__(self, db: DatabaseSessionManager, export_path: str = "results.csv"):
        if db.dialect_name not in _UPSERT_DIALECTS:
            raise StorageError(
                f"Unsupported database dialect: {db.dialect_name}", "configure",
            )
        self._db = db
        self._export_path = export_path
        self._locks: dict[int, _KeyLock] = {}

    # ─── Reads ─────────────────────────────────────────────────

    async def get(self, number: int) -> str | None:
        """Cached digits of number!, or None if not computed yet."""
        _check_number(number)
        async with self._db.session() as db:
            result = await db.execute(
                select(FactorialResultRecord.value).where(
                    FactorialResultRecord.number == number,
                ),
            )
            return result.scalar_one_or_none()

    async def get_many(self, numbers: Iterable[int]) -> dict[int, str]:
        """Bulk read: the subset of numbers that are cached, mapped to their digits."""
        wanted = sorted(set(numbers))
        for number in wanted:
            _check_number(number)
        if not wanted:
            return {}
        async with self._db.session() as db:
            result = await db.execute(
                select(FactorialResultRecord.number, FactorialResultRecord.value)
                .where(FactorialResultRecord.number.in_(wanted)),
            )
            return {number: value for number, value in result.all()}

    async def count(self) -> int:
        async with self._db.session() as db:
            result = await db.execute(
                select(func.count()).select_from(FactorialResultRecord),
            )
            return result.scalar_one()

    async def list_all(self) -> list[FactorialResult]:
        """Every stored result, ascending by number."""
        async with self._db.session() as db:
            result = await db.execute(
                select(FactorialResultRecord.number, FactorialResultRecord.value)
                .order_by(FactorialResultRecord.number),
            )
            return [
                FactorialResult(number=number, value=value)
                for number, value in result.all()
            ]

    # ─── Writes ────────────────────────────────────────────────

    async def put(self, number: int, value: str) -> bool:
        """Insert number -> value unless number is already stored.

        Returns:
            True if this call wrote the entry, False if one already existed.

        Raises:
            InvalidInputError: number negative or value not a digit string.
            StorageError: the write could not be completed.
        """
        _check_number(number)
        try:
            entry = FactorialResult(number=number, value=value)
        except ValidationError as e:
            raise InvalidInputError(
                f"Invalid factorial result for {number!r}: {e.errors()[0]['msg']}",
                ErrorContext(number=number),
            ) from e

        async with self._key_lock(entry.number):
            async with self._db.session() as db:
                inserted = await self._insert_if_absent(db, entry)
                await db.commit()
        if not inserted:
            logger.debug(
                f"Factorial of {entry.number} already stored, skipping write",
                extra={"number": entry.number},
            )
        return inserted

    async def clear_all(self) -> int:
        """Delete every entry. Returns how many were removed."""
        async with self._db.session() as db:
            result = await db.execute(delete(FactorialResultRecord))
            deleted = result.rowcount or 0
            await db.commit()
        logger.info(f"Cleared {deleted} stored results", extra={"operation": "clear_all"})
        return deleted

    # ─── Export ────────────────────────────────────────────────

    async def export(
        self, sink: str | os.PathLike | TextIO | BinaryIO | None = None,
    ) -> int:
        """Write all results as CSV (header "number,value") to a path or stream.

        Binary streams receive UTF-8 bytes; text streams receive str.

        Returns:
            Number of data rows written.

        Raises:
            ExportError: the sink could not be written.
            StorageError: the results could not be read.
        """
        results = await self.list_all()
        content = render_csv((r.number, r.value) for r in results)
        target = self._export_path if sink is None else sink

        if hasattr(target, "write"):
            data = content.encode("utf-8") if _is_binary_sink(target) else content
            try:
                target.write(data)
            except (OSError, ValueError, TypeError) as e:
                raise ExportError(f"Could not write to stream: {e}") from e
        else:
            path = Path(target)
            try:
                await asyncio.to_thread(_write_atomically, path, content)
            except OSError as e:
                logger.error(
                    f"Export to {path} failed: {e}",
                    extra={"operation": "export", "error_code": "EXPORT_ERROR"},
                )
                raise ExportError(str(e), str(path)) from e
            logger.info(
                f"Exported {len(results)} results to {path}",
                extra={"operation": "export"},
            )
        return len(results)

    async def health_check(self) -> bool:
        return await self._db.health_check()

    # ─── Internals ─────────────────────────────────────────────

    async def _insert_if_absent(self, db: AsyncSession, entry: FactorialResult) -> bool:
        values = {"number": entry.number, "value": entry.value}
        dialect_insert = _UPSERT_DIALECTS[self._db.dialect_name]
        stmt = (
            dialect_insert(FactorialResultRecord)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["number"])
        )
        result = await db.execute(stmt)
        return result.rowcount == 1

    @asynccontextmanager
    async def _key_lock(self, number: int) -> AsyncIterator[None]:
        entry = self._locks.get(number)
        if entry is None:
            entry = self._locks[number] = _KeyLock()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                del self._locks[number]


def _check_number(number: int) -> None:
    if isinstance(number, bool) or not isinstance(number, int) or number < 0:
        raise InvalidInputError(
            f"Lookup key must be a non-negative integer, got {number!r}",
        )


def _is_binary_sink(sink) -> bool:
    if isinstance(sink, io.TextIOBase):
        return False
    if isinstance(sink, (io.BufferedIOBase, io.RawIOBase)):
        return True
    mode = getattr(sink, "mode", "")
    return isinstance(mode, str) and "b" in mode


def _write_atomically(path: Path, content: str) -> None:
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent,
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except OSError:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
