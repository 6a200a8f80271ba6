"""
auth/dependencies.py -- FastAPI Depends() helpers for bearer authentication.

get_token_claims() only checks the token itself (signature, expiry, claim
shape). It is enough for the spa-scoped endpoints, which compare the token's
spa id against the path and then re-derive the spa's status live.

get_current_identity() additionally re-fetches the account, so a token for a
deactivated user, or one whose role / spa assignment changed since issue, is
rejected with 401.

All failures raise PortalError subclasses; api/main.py renders them.

Layer rule: may import fastapi (this module is part of the FastAPI
dependency injection system). No imports from api/.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import AdminIdentity, TokenClaims
from core.errors import TokenInvalid

_BEARER_PREFIX = "Bearer "


def bearer_token(request: Request) -> str:
    """Extract the raw token from `Authorization: Bearer <token>`."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith(_BEARER_PREFIX):
        token = auth_header[len(_BEARER_PREFIX) :].strip()
        if token:
            return token
    raise TokenInvalid("No token provided")


def get_token_claims(request: Request) -> TokenClaims:
    """Require a valid, unexpired bearer token. Raises TokenInvalid / TokenExpired."""
    return request.app.state.token_verifier.verify(bearer_token(request))


def get_current_identity(request: Request) -> AdminIdentity:
    """Require a valid token whose account is still active and unchanged.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: AdminIdentity = Depends(get_current_identity)): ...
    """
    claims = get_token_claims(request)
    identity = request.app.state.admin_store.get_active_by_id(claims.user_id)
    if identity is None:
        raise TokenInvalid("User not found or inactive")
    if identity.role != claims.role or identity.tenant_id != claims.tenant_id:
        raise TokenInvalid("Token claims do not match user")
    return identity
