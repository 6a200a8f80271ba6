"""
api/routes/v1/auth.py -- Authentication and spa access REST endpoints.

Routes:
  POST /api/v1/auth/login                   -- password login; returns user + bearer token
  POST /api/v1/auth/logout                  -- stateless; client discards its token
  GET  /api/v1/auth/test                    -- route liveness check
  GET  /api/v1/auth/verify                  -- fresh user record for a bearer token
  GET  /api/v1/auth/navigation/{spa_id}     -- navigation items allowed by the spa's live status
  GET  /api/v1/auth/spa-status/{spa_id}     -- the spa's live access policy

Security:
  [H2] POST /login is rate-limited (Settings.login_rate_limit, per IP).
  [C1] CredentialVerifier provides timing equalization -- never inline the
       store lookup + secret comparison in a route.
  [M5] Cache-Control: no-store on login responses.
  Navigation and status endpoints reject any spa_id other than the one the
  bearer's account is assigned to (403), then resolve the status live.
  Nothing in the token is trusted as an authorization decision.

Handlers are plain `def` functions: the stores are synchronous, and FastAPI
runs sync handlers in its threadpool so a slow query never blocks the loop.
Failures propagate as PortalError subclasses and are rendered by api/main.py.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_rate_limit
from api.models import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    NavigationResponse,
    NavItemModel,
    RouteCheckResponse,
    SpaStatusResponse,
    StatusInfo,
    VerifyResponse,
)
from auth.dependencies import get_current_identity
from auth.gate import AccessGate, identity_payload
from auth.models import AdminIdentity
from tenants.navigation import NavigationFilter

# Auth policy:
# - POST /auth/login:                 public
# - POST /auth/logout:                public -- there is no server-side session to end
# - GET  /auth/test:                  public
# - GET  /auth/verify:                bearer token, active account
# - GET  /auth/navigation/{spa_id}:   bearer token, active account, own spa only
# - GET  /auth/spa-status/{spa_id}:   bearer token, active account, own spa only
router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(login_rate_limit)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: Optional[LoginRequest] = None) -> JSONResponse:
    """Authenticate with username and password and return a bearer token.

    Wrong username, wrong password and inactive account all produce the same
    401 so the response never reveals whether an account exists. A spa owner
    whose spa is pending or blacklisted gets a 403 with the reason.
    """
    body = body or LoginRequest()
    gate: AccessGate = request.app.state.access_gate
    result = gate.login(body.username or "", body.password or "")

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(user=result.user_payload(), token=result.token).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.post("/auth/logout", response_model=MessageResponse)
def logout() -> MessageResponse:
    """Acknowledge logout. Tokens are not tracked server-side; the client discards it."""
    return MessageResponse(message="Logged out successfully")


@router.get("/auth/test", response_model=RouteCheckResponse)
def route_check() -> RouteCheckResponse:
    return RouteCheckResponse(
        message="Auth routes are working!",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


# ---------------------------------------------------------------------------
# Bearer-authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/verify", response_model=VerifyResponse)
def verify(request: Request, identity: AdminIdentity = Depends(get_current_identity)) -> VerifyResponse:
    """Return the account as it is now, with the spa's live policy for spa owners."""
    gate: AccessGate = request.app.state.access_gate
    policy = gate.policy_for(identity)
    return VerifyResponse(user=identity_payload(identity, policy))


@router.get("/auth/navigation/{spa_id}", response_model=NavigationResponse)
def navigation(
    request: Request,
    spa_id: int,
    identity: AdminIdentity = Depends(get_current_identity),
) -> NavigationResponse:
    """Navigation items the spa's current status allows, plus status info for messaging."""
    nav: NavigationFilter = request.app.state.navigation
    view = nav.filtered_navigation(identity.tenant_id, spa_id)
    return NavigationResponse(
        navigation=[NavItemModel.from_item(item) for item in view.items],
        status_info=StatusInfo.from_policy(view.policy),
    )


@router.get("/auth/spa-status/{spa_id}", response_model=SpaStatusResponse)
def spa_status(
    request: Request,
    spa_id: int,
    identity: AdminIdentity = Depends(get_current_identity),
) -> SpaStatusResponse:
    """The spa's live access policy."""
    nav: NavigationFilter = request.app.state.navigation
    policy = nav.status_check(identity.tenant_id, spa_id)
    return SpaStatusResponse.from_policy(spa_id, policy)
