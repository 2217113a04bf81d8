from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Callable

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from account_api.domain.accounts import LONE_SURROGATE, UNSET, Account, ValidationReason
from account_api.services.account_service import (
    AccountError,
    AccountService,
    ErrorKind,
)

router = APIRouter(tags=["accounts"])

AUTH_REALM = 'Basic realm="account-api"'

SIGNUP_FAILED = "Account creation failed"
UPDATE_FAILED = "User updation failed"

VALIDATION_CAUSES = {
    ValidationReason.CREDENTIAL_REQUIRED: "Required user_id and password",
    ValidationReason.INPUT_LENGTH: "Input length is incorrect",
    ValidationReason.INVALID_PATTERN: "Incorrect character pattern",
    ValidationReason.PROFILE_REQUIRED: "Required nickname or comment",
    ValidationReason.PROFILE_CONSTRAINT: "String length limit exceeded or containing invalid characters",
    ValidationReason.USER_ALREADY_EXISTS: "Already same user_id is used",
    ValidationReason.NOT_UPDATABLE_ID_OR_PASSWORD: "Not updatable user_id and password",
}


class _MalformedBody(Exception):
    pass


def _get_account_service(request: Request) -> AccountService:
    svc = getattr(getattr(request.app, "state", None), "account_service", None)
    if not svc:
        raise RuntimeError("AccountService not configured")
    return svc


# -------------------------------------- responses --------------------------------------
def auth_failed_response() -> JSONResponse:
    return JSONResponse(
        {"message": "Authentication failed"},
        status_code=401,
        headers={"WWW-Authenticate": AUTH_REALM},
    )


def _validation_response(failure_message: str, reason: ValidationReason) -> JSONResponse:
    cause = VALIDATION_CAUSES.get(reason, "Validation failed")
    return JSONResponse({"message": failure_message, "cause": cause}, status_code=400)


ERROR_RESPONSES: dict[ErrorKind, Callable[[AccountError, str], JSONResponse]] = {
    ErrorKind.VALIDATION: lambda exc, failure: _validation_response(failure, exc.reason),
    ErrorKind.AUTH_FAILED: lambda exc, failure: auth_failed_response(),
    ErrorKind.NO_PERMISSION: lambda exc, failure: JSONResponse({"message": "No permission for update"}, status_code=403),
    ErrorKind.NOT_FOUND: lambda exc, failure: JSONResponse({"message": "No user found"}, status_code=404),
}


def error_response(exc: AccountError, failure_message: str = "") -> JSONResponse:
    return ERROR_RESPONSES[exc.kind](exc, failure_message)


def _user_view(account: Account) -> dict:
    view = {"user_id": account.user_id, "nickname": account.display_nickname}
    if account.visible_comment is not None:
        view["comment"] = account.visible_comment
    return view


# -------------------------------------- request parsing --------------------------------------
def basic_credentials(request: Request) -> tuple[str, str] | None:
    """Decode an ``Authorization: Basic`` header; None when absent or unusable."""
    header = request.headers.get("authorization") or ""
    scheme, _, param = header.partition(" ")
    if scheme.lower() != "basic" or not param:
        return None
    try:
        decoded = base64.b64decode(param.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    user_id, sep, password = decoded.partition(":")
    if not sep:
        return None
    return user_id, password


async def _read_json_object(request: Request) -> dict[str, Any]:
    body = await request.body()
    limit = getattr(request.app.state, "max_body_bytes", 1 << 20)
    if len(body) > limit:
        raise HTTPException(413, "Request body too large")
    try:
        payload = json.loads(body or b"null")
    except (ValueError, UnicodeDecodeError) as exc:
        raise _MalformedBody() from exc
    if not isinstance(payload, dict):
        raise _MalformedBody()
    return payload


def _string_field(payload: dict[str, Any], key: str, default: Any) -> Any:
    """
    Return the string under key; a missing key or JSON null yields default.

    Lone surrogates become U+FFFD so every accepted value is valid UTF-8.
    """
    value = payload.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise _MalformedBody()
    return LONE_SURROGATE.sub("\ufffd", value)


# -------------------------------------- routes --------------------------------------
@router.post("/signup")
async def signup(request: Request):
    svc = _get_account_service(request)
    try:
        payload = await _read_json_object(request)
        user_id = _string_field(payload, "user_id", "")
        password = _string_field(payload, "password", "")
    except _MalformedBody:
        return _validation_response(SIGNUP_FAILED, ValidationReason.CREDENTIAL_REQUIRED)

    try:
        account = await run_in_threadpool(svc.sign_up, user_id, password)
    except AccountError as exc:
        return error_response(exc, SIGNUP_FAILED)
    return {
        "message": "Account successfully created",
        "user": {"user_id": account.user_id, "nickname": account.display_nickname},
    }


@router.get("/users/{user_id}")
async def get_user(user_id: str, request: Request):
    credentials = basic_credentials(request)
    if credentials is None:
        return auth_failed_response()
    svc = _get_account_service(request)
    auth_user, auth_password = credentials
    try:
        account = await run_in_threadpool(svc.get_user, user_id, auth_user, auth_password)
    except AccountError as exc:
        return error_response(exc)
    return {"message": "User details by user_id", "user": _user_view(account)}


@router.patch("/users/{user_id}")
async def update_user(user_id: str, request: Request):
    credentials = basic_credentials(request)
    if credentials is None:
        return auth_failed_response()
    svc = _get_account_service(request)
    try:
        payload = await _read_json_object(request)
        nickname = _string_field(payload, "nickname", UNSET)
        comment = _string_field(payload, "comment", UNSET)
        # sending either key at all is rejected, even with the current value
        forbid = (
            _string_field(payload, "user_id", None) is not None
            or _string_field(payload, "password", None) is not None
        )
    except _MalformedBody:
        return _validation_response(UPDATE_FAILED, ValidationReason.PROFILE_REQUIRED)

    auth_user, auth_password = credentials
    try:
        account = await run_in_threadpool(
            svc.update_user,
            user_id,
            auth_user,
            auth_password,
            nickname,
            comment,
            forbid,
        )
    except AccountError as exc:
        return error_response(exc, UPDATE_FAILED)
    return {"message": "User successfully updated", "user": _user_view(account)}


@router.post("/close")
async def close_account(request: Request):
    credentials = basic_credentials(request)
    if credentials is None:
        return auth_failed_response()
    svc = _get_account_service(request)
    auth_user, auth_password = credentials
    try:
        await run_in_threadpool(svc.close_user, auth_user, auth_password)
    except AccountError:
        return auth_failed_response()
    return {"message": "Account and user successfully removed"}
