"""In-process account store guarded by a reader/writer lock."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from account_api.repositories.base import (
    AccountRecord,
    RecordAlreadyExistsError,
    RecordNotFoundError,
)


class _ReadWriteLock:
    """Many concurrent readers or a single writer; waiting writers go before new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class MemoryRepository:
    """Dict-backed AccountRepository; records are copied on the way in and out."""

    def __init__(self) -> None:
        self._records: Dict[str, AccountRecord] = {}
        self._lock = _ReadWriteLock()

    def create(self, record: AccountRecord) -> None:
        with self._lock.write():
            if record.user_id in self._records:
                raise RecordAlreadyExistsError(record.user_id)
            self._records[record.user_id] = record.copy()

    def find_by_id(self, user_id: str) -> AccountRecord:
        with self._lock.read():
            record = self._records.get(user_id)
            if record is None:
                raise RecordNotFoundError(user_id)
            return record.copy()

    def update_profile(self, user_id: str, nickname: str, comment: str) -> None:
        with self._lock.write():
            record = self._records.get(user_id)
            if record is None:
                raise RecordNotFoundError(user_id)
            record.nickname = nickname
            record.comment = comment

    def delete(self, user_id: str) -> None:
        with self._lock.write():
            if user_id not in self._records:
                raise RecordNotFoundError(user_id)
            del self._records[user_id]

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._records)
