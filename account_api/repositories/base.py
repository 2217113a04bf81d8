"""Record store contract consumed by the account service."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Protocol


class RepositoryError(Exception):
    """Base class for storage-level signals."""


class RecordNotFoundError(RepositoryError):
    pass


class RecordAlreadyExistsError(RepositoryError):
    pass


@dataclass
class AccountRecord:
    """
    Persistence projection of an account.

    Kept separate from the domain Account to carry storage-level concerns
    such as the soft-delete flag.
    """

    user_id: str
    password_hash: str
    nickname: str = ""
    comment: str = ""
    deleted: bool = False

    def copy(self) -> "AccountRecord":
        return replace(self)


class AccountRepository(Protocol):
    """
    Keyed storage of account records.

    Implementations must make create() atomic with its existence check and
    must never hand out partially written records.
    """

    def create(self, record: AccountRecord) -> None:
        """Persist a new record; RecordAlreadyExistsError if the id is taken."""

        ...

    def find_by_id(self, user_id: str) -> AccountRecord:
        """Return a snapshot copy; RecordNotFoundError if absent."""

        ...

    def update_profile(self, user_id: str, nickname: str, comment: str) -> None:
        """Overwrite both profile fields; RecordNotFoundError if absent."""

        ...

    def delete(self, user_id: str) -> None:
        """Physically remove the record; RecordNotFoundError if absent."""

        ...
