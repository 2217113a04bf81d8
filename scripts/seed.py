#!/usr/bin/env python3
"""
Seed (and smoke-test) a running account API over HTTP.

Waits for /healthz, signs the test user up when it does not exist yet and
sets its nickname/comment.

Usage:
  API_BASE_URL=http://localhost:8080 python scripts/seed.py [--user-id X --password Y]
"""
from __future__ import annotations

import argparse
import os
import sys
import time

import httpx

ALREADY_EXISTS_CAUSE = "Already same user_id is used"


def _env(name: str, default: str) -> str:
    value = (os.getenv(name) or "").strip()
    return value or default


def _env_float(name: str, default: float) -> float:
    try:
        value = float(os.getenv(name, ""))
    except ValueError:
        return default
    return value if value > 0 else default


class SeedError(RuntimeError):
    pass


def wait_for_server(client: httpx.Client, wait_limit: float) -> None:
    deadline = time.monotonic() + wait_limit
    while True:
        try:
            if client.get("/healthz", timeout=2.0).status_code == 200:
                return
        except httpx.TransportError:
            pass
        if time.monotonic() >= deadline:
            raise SeedError(f"server not ready after {wait_limit:.0f}s")
        time.sleep(0.5)


def user_exists(client: httpx.Client, user_id: str, password: str) -> bool:
    resp = client.get(f"/users/{user_id}", auth=(user_id, password))
    if resp.status_code == 200:
        return True
    # the API answers 401 for an absent account, so both mean "seed it"
    if resp.status_code in (401, 404):
        return False
    raise SeedError(f"unexpected status {resp.status_code} while checking user")


def sign_up(client: httpx.Client, user_id: str, password: str) -> None:
    resp = client.post("/signup", json={"user_id": user_id, "password": password})
    if resp.status_code == 200:
        return
    if resp.status_code == 400:
        failure = resp.json()
        if str(failure.get("cause", "")).lower() == ALREADY_EXISTS_CAUSE.lower():
            return
        raise SeedError(f"signup failed: {failure.get('message')} ({failure.get('cause')})")
    raise SeedError(f"signup failed with status {resp.status_code}: {resp.text[:512].strip()}")


def update_profile(client: httpx.Client, user_id: str, password: str, nickname: str, comment: str) -> None:
    resp = client.patch(
        f"/users/{user_id}",
        json={"nickname": nickname, "comment": comment},
        auth=(user_id, password),
    )
    if resp.status_code == 200:
        return
    if resp.status_code == 401:
        raise SeedError("authentication failed when updating user")
    if resp.status_code == 403:
        raise SeedError("forbidden from updating user")
    raise SeedError(f"update failed with status {resp.status_code}: {resp.text[:512].strip()}")


def seed(base_url: str, user_id: str, password: str, nickname: str, comment: str, wait_limit: float) -> None:
    with httpx.Client(base_url=base_url.rstrip("/"), timeout=5.0) as client:
        wait_for_server(client, wait_limit)
        if not user_exists(client, user_id, password):
            sign_up(client, user_id, password)
        update_profile(client, user_id, password, nickname, comment)


def main() -> None:
    ap = argparse.ArgumentParser(description="Seed a test user into the account API")
    ap.add_argument("--base-url", default=_env("API_BASE_URL", "http://localhost:8080"))
    ap.add_argument("--user-id", default=_env("SEED_USER_ID", "TaroYamada"))
    ap.add_argument("--password", default=_env("SEED_PASSWORD", "PaSSwd4TY"))
    ap.add_argument("--nickname", default=_env("SEED_NICKNAME", "たろー"))
    ap.add_argument("--comment", default=_env("SEED_COMMENT", "僕は元気です"))
    ap.add_argument("--wait-limit", type=float, default=_env_float("SEED_WAIT_LIMIT", 30.0))
    args = ap.parse_args()

    try:
        seed(args.base_url, args.user_id, args.password, args.nickname, args.comment, args.wait_limit)
    except (SeedError, httpx.HTTPError) as exc:
        print(f"seed failed: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    print(f"OK: seed completed for user {args.user_id!r}")


if __name__ == "__main__":
    main()
