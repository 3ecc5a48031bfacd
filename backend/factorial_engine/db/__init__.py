"""Database Package — SQLAlchemy declarative Base shared by all ORM models.

Invariants:
    - Single async engine per engine instance (owned by DatabaseSessionManager)
    - All sessions are async (AsyncSession)
"""
