"""Engine and session plumbing for the SQL account store (STORAGE_BACKEND=sql)."""
from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Dict, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from account_api.core.config import get_settings

Base = declarative_base()


def engine_options(url: str) -> Dict[str, Any]:
    """Keyword arguments for create_engine; SQLite connections are shared across request threads."""
    options: Dict[str, Any] = {"future": True, "pool_pre_ping": True}
    if make_url(url).get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
    return options


@lru_cache
def get_engine() -> Engine:
    url = (get_settings().database_url or "").strip()
    if not url:
        raise RuntimeError("STORAGE_BACKEND=sql needs DATABASE_URL (e.g. sqlite:///accounts.db)")
    return create_engine(url, **engine_options(url))


@lru_cache
def _get_sessionmaker() -> sessionmaker:
    # records are copied out after commit, so attributes must stay loaded
    return sessionmaker(bind=get_engine(), autoflush=False, future=True, expire_on_commit=False)


@contextmanager
def get_session() -> Iterator[Session]:
    session: Session = _get_sessionmaker()()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
