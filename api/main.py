"""
api/main.py -- FastAPI application entry point for the LSA portal auth service.

Run with:  uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware    -- adds CORS headers for the portal frontend origins
  2. SlowAPIMiddleware -- enforces per-route rate limits from api.limiter

Lifespan builds the process-wide, read-only components once (engine,
stores, signing key inside the token issuer/verifier, gate, navigation
filter) and disposes the engine on shutdown. Nothing request-specific is
kept on app.state.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from auth.credentials import CredentialVerifier
from auth.gate import AccessGate
from auth.store import AdminStore
from auth.tokens import TokenIssuer, TokenVerifier
from core.config import Settings, get_settings
from core.db import make_engine
from core.errors import PortalError, TokenExpired, TokenInvalid, ValidationError
from tenants.navigation import NavigationFilter
from tenants.resolver import TenantStatusResolver
from tenants.store import TenantStore

VERSION = "0.1.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=getattr(logging, _settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("lsaportal.api")


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def wire_components(app: FastAPI, admin_store: AdminStore, tenant_store: TenantStore, settings: Settings) -> None:
    """Build the auth components and attach them to app.state.

    The signing key is read from settings here, once, and passed by value
    into the token issuer and verifier. Shared by the real lifespan and the
    test lifespan so both wire identical graphs.
    """
    lifetime = timedelta(seconds=settings.token_expire_seconds)
    resolver = TenantStatusResolver(tenant_store)
    issuer = TokenIssuer(settings.secret_key, lifetime=lifetime)

    app.state.admin_store = admin_store
    app.state.tenant_store = tenant_store
    app.state.token_verifier = TokenVerifier(settings.secret_key)
    app.state.access_gate = AccessGate(
        verifier=CredentialVerifier(admin_store),
        resolver=resolver,
        issuer=issuer,
        store=admin_store,
    )
    app.state.navigation = NavigationFilter(resolver)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create shared resources on startup and release them on shutdown."""
    logger.info("LSA portal auth starting up")
    engine = make_engine(_settings.database_url)
    wire_components(app, AdminStore(engine=engine), TenantStore(engine=engine), _settings)
    logger.info("Stores initialized")

    yield

    engine.dispose()
    logger.info("LSA portal auth shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="LSA Portal Auth",
    description="Authentication and spa-status-gated access for the LSA admin portal.",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs" if _settings.debug else None,
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every handler returns the same envelope: {success: false, message, error}.
# The portal frontend reads `message`; API clients read `error.code`.
# ---------------------------------------------------------------------------


def _is_login_path(request: Request) -> bool:
    return request.url.path.endswith("/auth/login")


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            message=message,
            error=ErrorDetail(code=code, message=message, detail=detail),
        ).model_dump(),
    )


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    """Render typed service failures. Only the client-safe message leaves the process."""
    body = ErrorResponse(
        message=exc.message,
        error=ErrorDetail(code=exc.code, message=exc.message),
    ).model_dump()
    body.update(exc.extra())
    response = JSONResponse(status_code=exc.status_code, content=body)
    if isinstance(exc, (TokenInvalid, TokenExpired)):
        response.headers["WWW-Authenticate"] = "Bearer"
    if _is_login_path(request):
        response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error_response(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """422 in general; a login body that cannot be parsed is the same 400 as a missing field."""
    if _is_login_path(request):
        response = _error_response(400, ValidationError.code, ValidationError.default_message)
        response.headers["Cache-Control"] = "no-store"
        return response
    return _error_response(422, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The raw exception is logged, never written to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "Internal server error")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version and a database round-trip check."""
    database = "ok"
    try:
        with request.app.state.admin_store.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check database probe failed")
        database = "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": database})
