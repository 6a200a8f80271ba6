"""
auth/tokens.py -- Bearer token issuing and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry user_id, login name (as `sub`),
       role and the spa id, plus iat/exp. Lifetime is fixed at issue time
       (24 hours by default).

  The signing key is passed in by whoever constructs TokenIssuer /
  TokenVerifier (the app lifespan, from Settings). Neither class reads
  configuration itself, so tests can build them with any key.

  Tokens never carry an authorization decision. can_login, access level and
  allowed tabs are re-derived from the spa's live status on every request,
  because the status can change after the token was issued.

  Verification distinguishes TokenExpired from TokenInvalid for diagnostics;
  the API maps both to 401.

Layer rule: no imports from api/ or tenants/.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from auth.models import TokenClaims
from core.errors import TokenExpired, TokenInvalid

logger = logging.getLogger("lsaportal.auth")

_ALGORITHM = "HS256"
DEFAULT_LIFETIME = timedelta(hours=24)


class TokenIssuer:
    """Sign TokenClaims into a compact JWT."""

    def __init__(self, secret_key: str, lifetime: timedelta = DEFAULT_LIFETIME) -> None:
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self.lifetime = lifetime

    def issue(self, claims: TokenClaims) -> str:
        issued_at = datetime.now(timezone.utc)
        payload = {
            "sub": claims.login_name,
            "user_id": claims.user_id,
            "role": claims.role,
            "tenant_id": claims.tenant_id,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.lifetime).timestamp()),
            # unique per issue, so two logins in the same second get distinct tokens
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)


class TokenVerifier:
    """Check signature and expiry, then extract TokenClaims. Stateless."""

    def __init__(self, secret_key: str) -> None:
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key

    def verify(self, token: str) -> TokenClaims:
        if not token:
            raise TokenInvalid("No token provided")
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except JWTError as exc:
            logger.debug("Rejected token: %s", exc)
            raise TokenInvalid() from exc
        return _payload_to_claims(payload)


def _payload_to_claims(payload: dict) -> TokenClaims:
    user_id = payload.get("user_id")
    login_name = payload.get("sub")
    role = payload.get("role")
    tenant_id = payload.get("tenant_id")
    if not isinstance(user_id, int) or not isinstance(login_name, str) or not isinstance(role, str):
        raise TokenInvalid()
    if tenant_id is not None and not isinstance(tenant_id, int):
        raise TokenInvalid()
    return TokenClaims(
        user_id=user_id,
        login_name=login_name,
        role=role,
        tenant_id=tenant_id,
        issued_at=_from_timestamp(payload.get("iat")),
        expires_at=_from_timestamp(payload.get("exp")),
    )


def _from_timestamp(value) -> datetime | None:
    if not isinstance(value, (int, float)):
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)
