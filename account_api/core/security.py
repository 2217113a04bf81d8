"""Security helpers (hashing and verification)."""

from __future__ import annotations

from functools import lru_cache

from argon2 import PasswordHasher, exceptions as argon_exc

from account_api.core.config import get_settings

_PREFIX = "argon2$"


class PasswordHashingError(RuntimeError):
    """Raised when a hash cannot be computed (internal failure, not bad input)."""


@lru_cache
def get_password_hasher() -> PasswordHasher:
    settings = get_settings()
    return PasswordHasher(
        time_cost=settings.argon2_time_cost,
        memory_cost=settings.argon2_memory_cost,
        parallelism=settings.argon2_parallelism,
    )


def hash_password(password: str) -> str:
    """Create a salted Argon2 hash with a prefix for detection."""
    try:
        hashed = get_password_hasher().hash(password)
    except argon_exc.HashingError as exc:
        raise PasswordHashingError("password hashing failed") from exc
    return f"{_PREFIX}{hashed}"


def verify_password(password: str, stored_hash: str | None) -> bool:
    stored = stored_hash or ""
    if not stored.startswith(_PREFIX):
        return False
    hashed = stored[len(_PREFIX) :]
    try:
        return get_password_hasher().verify(hashed, password)
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False
