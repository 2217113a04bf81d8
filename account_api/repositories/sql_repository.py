"""Account record store backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError

from account_api.db.models import AccountRow
from account_api.db.session import get_session
from account_api.repositories.base import (
    AccountRecord,
    RecordAlreadyExistsError,
    RecordNotFoundError,
)


def _to_record(row: AccountRow) -> AccountRecord:
    return AccountRecord(
        user_id=row.user_id,
        password_hash=row.password_hash,
        nickname=row.nickname or "",
        comment=row.comment or "",
        deleted=bool(row.deleted),
    )


class SQLRepository:
    """AccountRepository over the accounts table; the primary key enforces uniqueness."""

    def create(self, record: AccountRecord) -> None:
        now = datetime.now(timezone.utc)
        row = AccountRow(
            user_id=record.user_id,
            password_hash=record.password_hash,
            nickname=record.nickname,
            comment=record.comment,
            deleted=record.deleted,
            created_at=now,
            updated_at=now,
        )
        with get_session() as session:
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise RecordAlreadyExistsError(record.user_id) from exc

    def find_by_id(self, user_id: str) -> AccountRecord:
        with get_session() as session:
            row = session.get(AccountRow, user_id)
            if row is None:
                raise RecordNotFoundError(user_id)
            return _to_record(row)

    def update_profile(self, user_id: str, nickname: str, comment: str) -> None:
        with get_session() as session:
            stmt = (
                update(AccountRow)
                .where(AccountRow.user_id == user_id)
                .values(nickname=nickname, comment=comment, updated_at=datetime.now(timezone.utc))
            )
            result = session.execute(stmt)
            session.commit()
            if not result.rowcount:
                raise RecordNotFoundError(user_id)

    def delete(self, user_id: str) -> None:
        with get_session() as session:
            result = session.execute(delete(AccountRow).where(AccountRow.user_id == user_id))
            session.commit()
            if not result.rowcount:
                raise RecordNotFoundError(user_id)
