"""FactorialResult ORM — one memoized n! per row.

Invariants:
    - number is the primary key (no surrogate id): the unique constraint is what
      makes insert-if-absent safe across connections and processes
    - value is the full decimal string, never truncated
    - Rows are inserted once and never updated; only clear_all deletes them

Design Decisions:
    - BigInteger key: inputs are plain ints, not bounded by the 32-bit range
    - Text for value: factorial digit counts grow without bound
    - autoincrement=False: the key is the input, never generated
    - created_at is filled by the database (server_default), matching the
      001_factorial_results migration so create_schema and alembic agree
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from factorial_engine.db.base import Base


class FactorialResultRecord(Base):
    """Persisted factorial result."""
    __tablename__ = "factorial_results"

    number: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=False,
    )
    value: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
