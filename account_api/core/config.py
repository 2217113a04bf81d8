"""
Configuration helpers for the account API.

Routers/services read a Settings object instead of fetching os.environ
directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os

from argon2 import DEFAULT_MEMORY_COST, DEFAULT_PARALLELISM, DEFAULT_TIME_COST


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    host: str
    port: int
    storage_backend: str
    database_url: str
    seed_test_user: bool
    max_body_bytes: int
    log_level: str
    argon2_time_cost: int
    argon2_memory_cost: int
    argon2_parallelism: int


def _int(value: str | None, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _str(name: str, default: str) -> str:
    value = (os.getenv(name) or "").strip()
    return value or default


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    return Settings(
        app_env=_str("APP_ENV", "dev").lower(),
        host=_str("HOST", "0.0.0.0"),
        port=_int(os.getenv("PORT"), 8080),
        storage_backend=_str("STORAGE_BACKEND", "memory").lower(),
        database_url=_str("DATABASE_URL", ""),
        seed_test_user=_bool(os.getenv("SEED_TEST_USER"), True),
        max_body_bytes=_int(os.getenv("MAX_BODY_BYTES"), 1 << 20),
        log_level=_str("LOG_LEVEL", "INFO").upper(),
        argon2_time_cost=_int(os.getenv("ARGON2_TIME_COST"), DEFAULT_TIME_COST),
        argon2_memory_cost=_int(os.getenv("ARGON2_MEMORY_COST"), DEFAULT_MEMORY_COST),
        argon2_parallelism=_int(os.getenv("ARGON2_PARALLELISM"), DEFAULT_PARALLELISM),
    )
