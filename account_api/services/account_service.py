"""
Account use cases: sign up, view, update profile and close.

Every failure is raised as an AccountError subclass whose ``kind`` the
transport layer maps to a status code. Nothing here logs or retries.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from account_api.core.security import hash_password, verify_password
from account_api.domain.accounts import (
    UNSET,
    Account,
    DomainValidationError,
    OptionalField,
    ValidationReason,
    apply_profile_update,
    validate_new_account,
)
from account_api.repositories.base import (
    AccountRecord,
    AccountRepository,
    RecordAlreadyExistsError,
    RecordNotFoundError,
)


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTH_FAILED = "auth_failed"
    NO_PERMISSION = "no_permission"
    NOT_FOUND = "not_found"


class AccountError(Exception):
    """Base class for account use-case failures."""

    kind: ErrorKind


class ValidationError(AccountError):
    kind = ErrorKind.VALIDATION

    def __init__(self, reason: ValidationReason):
        super().__init__(reason.value)
        self.reason = reason


class AuthFailedError(AccountError):
    kind = ErrorKind.AUTH_FAILED


class NoPermissionError(AccountError):
    kind = ErrorKind.NO_PERMISSION


class NotFoundError(AccountError):
    kind = ErrorKind.NOT_FOUND


def _to_account(record: AccountRecord) -> Account:
    return Account(
        user_id=record.user_id,
        password_hash=record.password_hash,
        nickname=record.nickname,
        comment=record.comment,
        deleted=record.deleted,
    )


@dataclass
class AccountService:
    """Orchestrates validation, hashing and the record store."""

    repository: AccountRepository

    # -------------------------------------- sign up --------------------------------------
    def sign_up(self, user_id: str, raw_password: str) -> Account:
        try:
            account = validate_new_account(user_id, raw_password)
        except DomainValidationError as exc:
            raise ValidationError(exc.reason) from exc
        account.password_hash = hash_password(raw_password)
        record = AccountRecord(user_id=account.user_id, password_hash=account.password_hash)
        try:
            self.repository.create(record)
        except RecordAlreadyExistsError as exc:
            raise ValidationError(ValidationReason.USER_ALREADY_EXISTS) from exc
        return account

    # -------------------------------------- view --------------------------------------
    def get_user(self, path_user_id: str, auth_user_id: str, auth_password: str) -> Account:
        try:
            auth_account = _to_account(self.repository.find_by_id(auth_user_id))
        except RecordNotFoundError as exc:
            # an unknown login looks exactly like a wrong password
            raise AuthFailedError() from exc
        if not verify_password(auth_password, auth_account.password_hash):
            raise AuthFailedError()

        if path_user_id == auth_user_id:
            return auth_account

        try:
            return _to_account(self.repository.find_by_id(path_user_id))
        except RecordNotFoundError as exc:
            raise NotFoundError() from exc

    # -------------------------------------- update --------------------------------------
    def update_user(
        self,
        path_user_id: str,
        auth_user_id: str,
        auth_password: str,
        nickname: OptionalField = UNSET,
        comment: OptionalField = UNSET,
        forbid_id_or_password_change: bool = False,
    ) -> Account:
        """
        Update the caller's own nickname/comment.

        Ownership is checked before credentials, and credentials before any
        field validation.
        """
        if path_user_id != auth_user_id:
            raise NoPermissionError()
        try:
            account = _to_account(self.repository.find_by_id(auth_user_id))
        except RecordNotFoundError as exc:
            raise NotFoundError() from exc
        if not verify_password(auth_password, account.password_hash):
            raise AuthFailedError()
        if forbid_id_or_password_change:
            raise ValidationError(ValidationReason.NOT_UPDATABLE_ID_OR_PASSWORD)
        try:
            apply_profile_update(account, nickname=nickname, comment=comment)
        except DomainValidationError as exc:
            raise ValidationError(exc.reason) from exc
        try:
            self.repository.update_profile(account.user_id, account.nickname, account.comment)
        except RecordNotFoundError as exc:
            raise NotFoundError() from exc
        return account

    # -------------------------------------- close --------------------------------------
    def close_user(self, auth_user_id: str, auth_password: str) -> None:
        try:
            account = _to_account(self.repository.find_by_id(auth_user_id))
        except Exception as exc:
            # closing never reveals whether, or why not, the account could be read
            raise AuthFailedError() from exc
        if not verify_password(auth_password, account.password_hash):
            raise AuthFailedError()
        try:
            self.repository.delete(account.user_id)
        except RecordNotFoundError as exc:
            raise AuthFailedError() from exc

    # -------------------------------------- seeding --------------------------------------
    def seed_test_user(self, user_id: str, password: str, nickname: str = "", comment: str = "") -> Account:
        """Create the user if needed and set its profile; an existing user is reused."""
        try:
            self.sign_up(user_id, password)
        except ValidationError as exc:
            if exc.reason is not ValidationReason.USER_ALREADY_EXISTS:
                raise
        return self.update_user(user_id, user_id, password, nickname=nickname, comment=comment)
