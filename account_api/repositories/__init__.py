"""
Persistence adapters.

The account service depends on the AccountRepository protocol; the memory
store is the default and the SQL store is selected with STORAGE_BACKEND=sql.
"""

from account_api.repositories.base import (
    AccountRecord,
    AccountRepository,
    RecordAlreadyExistsError,
    RecordNotFoundError,
    RepositoryError,
)
from account_api.repositories.memory_repository import MemoryRepository

__all__ = [
    "AccountRecord",
    "AccountRepository",
    "MemoryRepository",
    "RecordAlreadyExistsError",
    "RecordNotFoundError",
    "RepositoryError",
]
