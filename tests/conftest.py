from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Makes the account_api package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from account_api.core import config as core_config  # noqa: E402
from account_api.core import security  # noqa: E402


@pytest.fixture(autouse=True)
def cheap_hashing(monkeypatch):
    """Keeps argon2 fast in tests and resets cached settings around each test."""
    monkeypatch.setenv("ARGON2_TIME_COST", "1")
    monkeypatch.setenv("ARGON2_MEMORY_COST", "8")
    monkeypatch.setenv("ARGON2_PARALLELISM", "1")
    monkeypatch.setenv("SEED_TEST_USER", "false")
    monkeypatch.delenv("STORAGE_BACKEND", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    # held here because a test may monkeypatch the module attributes
    settings_cache = core_config.get_settings
    hasher_cache = security.get_password_hasher
    settings_cache.cache_clear()
    hasher_cache.cache_clear()
    yield
    settings_cache.cache_clear()
    hasher_cache.cache_clear()
