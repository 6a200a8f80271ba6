"""
auth/gate.py -- Login orchestration (the access gate).

State machine, one pass per login attempt:

    CredentialsPending  --bad input-------> Denied (ValidationError, 400)
                        --no match--------> Denied (InvalidCredentials, 401)
    CredentialsVerified --bad account-----> Denied (SystemFailure, 500)
                        --global role-----> Authorized
    TenantGateCheck     --lookup failed---> Denied (SystemFailure, 500)
                        --login forbidden-> Denied (AccessRestricted, 403)
                        --login allowed---> Authorized

A "bad account" has a role outside Role, or a tenant-scoped role with no
spa. Global roles (admin_lsa, government_officer) go straight from
CredentialsVerified to Authorized; the spa status is never consulted for
them. Denials are raised as PortalError subclasses; Authorized returns a
LoginResult carrying a freshly issued token.

Layer rule: auth/ may import tenants/ (the gate consults the resolver);
tenants/ never imports auth/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError

from auth.credentials import CredentialVerifier
from auth.models import AdminIdentity, TokenClaims
from auth.store import AdminStore
from auth.tokens import TokenIssuer
from core.errors import AccessRestricted, SystemFailure, TenantResolutionError
from tenants.models import AccessPolicy
from tenants.resolver import TenantStatusResolver

logger = logging.getLogger("lsaportal.auth")


class LoginState(str, Enum):
    credentials_pending = "CredentialsPending"
    credentials_verified = "CredentialsVerified"
    tenant_gate_check = "TenantGateCheck"
    authorized = "Authorized"
    denied = "Denied"


@dataclass
class LoginResult:
    identity: AdminIdentity
    token: str
    policy: AccessPolicy | None = None

    def user_payload(self) -> dict:
        return identity_payload(self.identity, self.policy)


def identity_payload(identity: AdminIdentity, policy: AccessPolicy | None) -> dict:
    """Public identity fields, plus the live spa policy for tenant-scoped users."""
    payload = identity.public_dict()
    if policy is not None:
        payload.update(
            spa_status=policy.status.value,
            access_level=policy.access_level.value,
            allowed_tabs=list(policy.allowed_tabs),
            status_message=policy.status_message,
        )
    return payload


class AccessGate:
    def __init__(
        self,
        verifier: CredentialVerifier,
        resolver: TenantStatusResolver,
        issuer: TokenIssuer,
        store: AdminStore,
    ) -> None:
        self._verifier = verifier
        self._resolver = resolver
        self._issuer = issuer
        self._store = store

    def login(self, login_name: str, secret: str) -> LoginResult:
        """Run one login attempt through the gate.

        Raises ValidationError, InvalidCredentials, AccessRestricted or
        SystemFailure. Each successful call issues a new token.
        """
        state = LoginState.credentials_pending
        try:
            identity = self._verifier.verify(login_name, secret)
        except SQLAlchemyError as exc:
            logger.error("Credential lookup failed in state %s: %s", state.value, exc)
            raise SystemFailure() from exc
        state = LoginState.credentials_verified

        if identity.tenant_scoped:
            state = LoginState.tenant_gate_check
        policy = self.policy_for(identity)
        if policy is not None and not policy.can_login:
            logger.info(
                "Login denied for user_id=%s: spa_id=%s status=%s",
                identity.id,
                identity.tenant_id,
                policy.status.value,
            )
            raise AccessRestricted(policy.status_message, status=policy.status.value)

        self._stamp_last_login(identity)
        token = self._issuer.issue(TokenClaims.for_identity(identity))
        state = LoginState.authorized
        logger.info("Login %s for user_id=%s role=%s", state.value, identity.id, identity.role)
        return LoginResult(identity=identity, token=token, policy=policy)

    def policy_for(self, identity: AdminIdentity) -> AccessPolicy | None:
        """Live spa policy for a tenant-scoped identity, None for global roles.

        An unrecognized role, a tenant-scoped account without a spa and a
        resolver failure all surface as SystemFailure; the underlying reason
        is logged only.
        """
        if not identity.is_consistent():
            logger.error(
                "user_id=%s is misconfigured: role=%r spa_id=%s", identity.id, identity.role, identity.tenant_id
            )
            raise SystemFailure()
        if not identity.tenant_scoped:
            return None
        try:
            return self._resolver.resolve(identity.tenant_id)
        except TenantResolutionError as exc:
            logger.error("Spa status check failed for user_id=%s: %s", identity.id, exc.code)
            raise SystemFailure("Error checking spa status") from exc

    def _stamp_last_login(self, identity: AdminIdentity) -> None:
        try:
            self._store.update_last_login(identity.id)
        except SQLAlchemyError:
            logger.exception("Could not update last_login for user_id=%s; continuing", identity.id)
