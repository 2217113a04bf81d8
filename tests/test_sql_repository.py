"""
Smoke tests for the SQLRepository against a temporary SQLite database.
"""
from __future__ import annotations

import pytest

from account_api.core import config as core_config
from account_api.db import create_all, drop_all
from account_api.db import session as db_session
from account_api.repositories import AccountRecord, RecordAlreadyExistsError, RecordNotFoundError
from account_api.repositories.sql_repository import SQLRepository


@pytest.fixture()
def temp_db(tmp_path, monkeypatch):
    """Configures a temporary SQLite file and tears it down completely (Windows keeps locked files)."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    # clear caches so the env is read again
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]

    engine = db_session.get_engine()
    drop_all(engine)
    create_all(engine)

    yield db_file

    drop_all(engine)
    engine.dispose()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]


def test_account_lifecycle(temp_db):
    repo = SQLRepository()
    repo.create(AccountRecord(user_id="TaroYamada", password_hash="argon2$hash"))

    found = repo.find_by_id("TaroYamada")
    assert found.user_id == "TaroYamada"
    assert (found.nickname, found.comment, found.deleted) == ("", "", False)

    repo.update_profile("TaroYamada", "たろー", "僕は元気です")
    found = repo.find_by_id("TaroYamada")
    assert found.nickname == "たろー"
    assert found.comment == "僕は元気です"
    assert found.password_hash == "argon2$hash"

    repo.delete("TaroYamada")
    with pytest.raises(RecordNotFoundError):
        repo.find_by_id("TaroYamada")


def test_duplicate_id_rejected_by_primary_key(temp_db):
    repo = SQLRepository()
    repo.create(AccountRecord(user_id="TaroYamada", password_hash="first"))
    with pytest.raises(RecordAlreadyExistsError):
        repo.create(AccountRecord(user_id="TaroYamada", password_hash="second"))
    assert repo.find_by_id("TaroYamada").password_hash == "first"


def test_missing_rows_signal_not_found(temp_db):
    repo = SQLRepository()
    with pytest.raises(RecordNotFoundError):
        repo.update_profile("nobody123", "n", "c")
    with pytest.raises(RecordNotFoundError):
        repo.delete("nobody123")


def test_missing_database_url_is_reported(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        db_session.get_engine()
    db_session.get_engine.cache_clear()


def test_sqlite_connections_may_cross_threads():
    options = db_session.engine_options("sqlite:///accounts.db")
    assert options["connect_args"] == {"check_same_thread": False}
    assert "connect_args" not in db_session.engine_options("postgresql://u:p@db/accounts")


def test_failed_write_leaves_session_usable(temp_db):
    repo = SQLRepository()
    repo.create(AccountRecord(user_id="TaroYamada", password_hash="first"))
    with pytest.raises(RecordAlreadyExistsError):
        repo.create(AccountRecord(user_id="TaroYamada", password_hash="second"))
    repo.update_profile("TaroYamada", "after", "")
    assert repo.find_by_id("TaroYamada").nickname == "after"
