from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from account_api.core.config import Settings, get_settings
from account_api.core.logging import configure_logging
from account_api.repositories import AccountRepository, MemoryRepository
from account_api.routers import accounts as accounts_router
from account_api.routers import health as health_router
from account_api.services.account_service import AccountService

logger = logging.getLogger("account_api.app")

SEED_USER_ID = "TaroYamada"
SEED_PASSWORD = "PaSSwd4TY"
SEED_NICKNAME = "たろー"
SEED_COMMENT = "僕は元気です"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers for a JSON-only API."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Cache-Control", "no-store")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One log line per request: method, path, status, latency and user agent."""

    async def dispatch(self, request, call_next):
        start = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            logger.info(
                '%s %s %d %dms UA="%s"',
                request.method,
                request.url.path,
                status,
                elapsed_ms,
                request.headers.get("user-agent", ""),
            )


def build_repository(settings: Settings) -> AccountRepository:
    backend = settings.storage_backend
    if backend == "memory":
        return MemoryRepository()
    if backend == "sql":
        # imported lazily so the memory backend never needs a DATABASE_URL
        from account_api.db import create_all
        from account_api.repositories.sql_repository import SQLRepository

        create_all()
        return SQLRepository()
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")


async def _unhandled_error(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"message": "Internal Server Error"}, status_code=500)


def create_app(settings: Settings | None = None, repository: AccountRepository | None = None) -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (``--factory``)."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Account API")
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")
    app.add_middleware(AccessLogMiddleware)
    app.add_exception_handler(Exception, _unhandled_error)

    repo = repository if repository is not None else build_repository(settings)
    account_service = AccountService(repository=repo)
    app.state.settings = settings
    app.state.account_service = account_service
    app.state.max_body_bytes = settings.max_body_bytes
    logger.info("storage backend: %s", type(repo).__name__)

    if settings.seed_test_user:
        account_service.seed_test_user(SEED_USER_ID, SEED_PASSWORD, nickname=SEED_NICKNAME, comment=SEED_COMMENT)
        logger.info("seeded test user %s", SEED_USER_ID)

    app.include_router(health_router.router)
    app.include_router(accounts_router.router)
    return app
