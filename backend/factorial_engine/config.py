"""Engine Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - database_url always names an async driver (aiosqlite or asyncpg)

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults work out-of-the-box: a local SQLite file next to the process, like
      the desktop app this engine backs
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def normalize_database_url(url: str) -> str:
    """Plain sqlite:// and postgresql:// URLs get their async driver."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


class Settings(BaseSettings):
    """Engine settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "sqlite+aiosqlite:///factorials.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_sync_url(cls, v: str) -> str:
        if isinstance(v, str):
            return normalize_database_url(v)
        return v

    # Pool sizing applies to every pooled database except in-memory SQLite;
    # sessions beyond pool_size + max_overflow queue instead of timing out
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_timeout: float = 30.0

    # SQLite
    sqlite_busy_timeout: float = 30.0
    sqlite_wal: bool = True

    # Create the table on startup; set to False when alembic owns the schema
    database_auto_create: bool = True

    # Export
    export_path: str = "results.csv"

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
