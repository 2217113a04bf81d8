"""Domain rules for accounts: identifier, password and profile validation."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Union

USER_ID_PATTERN = re.compile(r"[A-Za-z0-9]{6,20}")
# printable ASCII without space
PASSWORD_PATTERN = re.compile(rb"[\x21-\x7e]{8,20}")
# unpaired UTF-16 halves; they cannot be encoded as UTF-8
LONE_SURROGATE = re.compile(r"[\ud800-\udfff]")

USER_ID_MIN, USER_ID_MAX = 6, 20
PASSWORD_MIN, PASSWORD_MAX = 8, 20
NICKNAME_MAX = 30
COMMENT_MAX = 100


class ValidationReason(str, Enum):
    CREDENTIAL_REQUIRED = "credential_required"
    INPUT_LENGTH = "input_length"
    INVALID_PATTERN = "invalid_pattern"
    PROFILE_REQUIRED = "profile_required"
    PROFILE_CONSTRAINT = "profile_constraint"
    USER_ALREADY_EXISTS = "user_already_exists"
    NOT_UPDATABLE_ID_OR_PASSWORD = "not_updatable_id_or_password"


class DomainValidationError(Exception):
    """Raised when input violates an account rule."""

    def __init__(self, reason: ValidationReason):
        super().__init__(reason.value)
        self.reason = reason


class _Unset:
    """Marker for an update field that was not supplied at all."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()

OptionalField = Union[str, _Unset]


@dataclass
class Account:
    """
    Account aggregate.

    An empty nickname means "unset" (the user_id is shown instead) and an
    empty comment means "cleared".
    """

    user_id: str
    password_hash: str = ""
    nickname: str = ""
    comment: str = ""
    deleted: bool = False

    @property
    def display_nickname(self) -> str:
        return self.nickname or self.user_id

    @property
    def visible_comment(self) -> str | None:
        return self.comment or None


def has_control_chars(value: str) -> bool:
    """True when value holds an ASCII control character (0x00-0x1F or 0x7F)."""
    return any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value)


def validate_new_account(user_id: str, raw_password: str) -> Account:
    """Check sign-up credentials and return an unpersisted account shell."""
    if not user_id or not raw_password:
        raise DomainValidationError(ValidationReason.CREDENTIAL_REQUIRED)
    password_bytes = raw_password.encode("utf-8", "surrogatepass")
    if not USER_ID_MIN <= len(user_id) <= USER_ID_MAX:
        raise DomainValidationError(ValidationReason.INPUT_LENGTH)
    if not PASSWORD_MIN <= len(password_bytes) <= PASSWORD_MAX:
        raise DomainValidationError(ValidationReason.INPUT_LENGTH)
    if not USER_ID_PATTERN.fullmatch(user_id) or not PASSWORD_PATTERN.fullmatch(password_bytes):
        raise DomainValidationError(ValidationReason.INVALID_PATTERN)
    return Account(user_id=user_id)


def _check_profile_value(value: str, limit: int) -> None:
    if len(value) > limit or has_control_chars(value) or LONE_SURROGATE.search(value):
        raise DomainValidationError(ValidationReason.PROFILE_CONSTRAINT)


def apply_profile_update(
    account: Account,
    nickname: OptionalField = UNSET,
    comment: OptionalField = UNSET,
) -> Account:
    """
    Validate and apply a partial profile update in place.

    UNSET leaves a field untouched; an empty string is a real value that
    unsets the nickname or clears the comment.
    """
    if nickname is UNSET and comment is UNSET:
        raise DomainValidationError(ValidationReason.PROFILE_REQUIRED)
    if nickname is not UNSET:
        _check_profile_value(nickname, NICKNAME_MAX)
    if comment is not UNSET:
        _check_profile_value(comment, COMMENT_MAX)
    if nickname is not UNSET:
        account.nickname = nickname
    if comment is not UNSET:
        account.comment = comment
    return account
