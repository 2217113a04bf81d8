from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from account_api.repositories import (
    AccountRecord,
    MemoryRepository,
    RecordAlreadyExistsError,
    RecordNotFoundError,
)
from account_api.repositories.memory_repository import _ReadWriteLock


def _record(user_id: str = "TaroYamada") -> AccountRecord:
    return AccountRecord(user_id=user_id, password_hash="argon2$hash")


def test_create_find_update_delete():
    repo = MemoryRepository()
    repo.create(_record())
    assert repo.find_by_id("TaroYamada").nickname == ""

    repo.update_profile("TaroYamada", "たろー", "hello")
    found = repo.find_by_id("TaroYamada")
    assert (found.nickname, found.comment) == ("たろー", "hello")
    assert found.password_hash == "argon2$hash"

    repo.delete("TaroYamada")
    with pytest.raises(RecordNotFoundError):
        repo.find_by_id("TaroYamada")
    assert len(repo) == 0


def test_duplicate_create_rejected():
    repo = MemoryRepository()
    repo.create(_record())
    with pytest.raises(RecordAlreadyExistsError):
        repo.create(_record())


def test_missing_record_signals_not_found():
    repo = MemoryRepository()
    with pytest.raises(RecordNotFoundError):
        repo.update_profile("nobody123", "n", "c")
    with pytest.raises(RecordNotFoundError):
        repo.delete("nobody123")


def test_records_are_copies():
    repo = MemoryRepository()
    original = _record()
    repo.create(original)
    original.nickname = "mutated outside"

    snapshot = repo.find_by_id("TaroYamada")
    assert snapshot.nickname == ""
    snapshot.comment = "mutated snapshot"
    assert repo.find_by_id("TaroYamada").comment == ""


def test_concurrent_create_yields_single_success():
    repo = MemoryRepository()
    barrier = threading.Barrier(16)

    def attempt(_):
        barrier.wait()
        try:
            repo.create(_record())
            return True
        except RecordAlreadyExistsError:
            return False

    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(attempt, range(16)))

    assert results.count(True) == 1
    assert results.count(False) == 15
    assert len(repo) == 1


def test_concurrent_updates_never_tear_profile():
    repo = MemoryRepository()
    repo.create(_record())
    stop = threading.Event()
    torn = []

    def writer(tag: str):
        for _ in range(200):
            repo.update_profile("TaroYamada", tag, tag)

    def reader():
        while not stop.is_set():
            rec = repo.find_by_id("TaroYamada")
            if rec.nickname != rec.comment:
                torn.append((rec.nickname, rec.comment))

    reader_thread = threading.Thread(target=reader)
    reader_thread.start()
    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(writer, ["a", "b", "c", "d"]))
    stop.set()
    reader_thread.join()

    assert torn == []


def test_waiting_writer_goes_before_new_readers():
    lock = _ReadWriteLock()
    order = []
    reading = threading.Event()
    release = threading.Event()

    def first_reader():
        with lock.read():
            reading.set()
            release.wait(5)

    def writer():
        with lock.write():
            order.append("write")

    def late_reader():
        with lock.read():
            order.append("read")

    threads = [threading.Thread(target=first_reader)]
    threads[0].start()
    assert reading.wait(5)

    threads.append(threading.Thread(target=writer))
    threads[1].start()
    deadline = time.monotonic() + 5
    while not lock._writers_waiting and time.monotonic() < deadline:
        time.sleep(0.01)
    assert lock._writers_waiting == 1

    threads.append(threading.Thread(target=late_reader))
    threads[2].start()
    time.sleep(0.05)
    assert order == []

    release.set()
    for thread in threads:
        thread.join(5)
    assert order == ["write", "read"]
