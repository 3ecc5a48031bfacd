"""Database Session Manager — async connection pool with automatic rollback and health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - All SQLAlchemy exceptions mapped to StorageError (core/errors.py), original chained
    - SQLite connections wait up to sqlite_busy_timeout for the write lock
      instead of failing immediately
    - At most pool_size + max_overflow sessions are open at once; extra callers
      queue on a semaphore instead of timing out on pool checkout

Design Decisions:
    - One manager per FactorialEngine, disposed by lifespan() on shutdown
    - expire_on_commit=False: prevents lazy-load issues in async context
    - WAL journal for file-backed SQLite: readers never block on a writer
    - Pool sizing passed for every pooled database; only in-memory SQLite
      (StaticPool, one shared connection) rejects it and skips the semaphore
"""

import asyncio
import logging
from contextlib import asynccontextmanager, nullcontext
from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)

from factorial_engine.core.errors import StorageError
from factorial_engine.db.base import Base
import factorial_engine.models  # noqa: F401  (populates Base.metadata)

logger = logging.getLogger(__name__)


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: float = 30.0,
        sqlite_busy_timeout: float = 30.0,
        sqlite_wal: bool = True,
    ):
        url = make_url(database_url)
        self.is_sqlite = url.get_backend_name() == "sqlite"
        is_memory = self.is_sqlite and url.database in (None, "", ":memory:")
        engine_kwargs: dict = {"pool_pre_ping": True}
        if self.is_sqlite:
            engine_kwargs["connect_args"] = {"timeout": sqlite_busy_timeout}
        if not is_memory:
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=3600,
            )
        self._slots: asyncio.Semaphore | None = None
        if not is_memory and max_overflow >= 0:
            self._slots = asyncio.Semaphore(pool_size + max_overflow)
        self.engine = create_async_engine(database_url, **engine_kwargs)
        if self.is_sqlite and sqlite_wal:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_wal)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        async with self._slots if self._slots is not None else nullcontext():
            async with self._open_session() as session:
                yield session

    @asynccontextmanager
    async def _open_session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except IntegrityError as e:
            await session.rollback()
            logger.error(f"DB integrity error: {e}")
            raise StorageError("Integrity constraint violated", "commit") from e
        except OperationalError as e:
            await session.rollback()
            logger.error(f"DB operational error: {e}")
            raise StorageError("Connection or operational error", "execute") from e
        except DBAPIError as e:
            await session.rollback()
            logger.error(f"DB driver error: {e}")
            raise StorageError("Database driver error", "query") from e
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise StorageError("Database operation failed", "unknown") from e
        finally:
            await session.close()

    async def create_schema(self) -> None:
        """Create missing tables (CREATE TABLE IF NOT EXISTS semantics)."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            logger.error(f"Schema creation failed: {e}")
            raise StorageError("Could not create schema", "create_schema") from e

    async def health_check(self) -> bool:
        """Check database connectivity."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


def _enable_sqlite_wal(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()
