"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, minimal logic). Stores and the
access gate do the work; these types only own shape.

Stored secrets are a tagged variant resolved once, when a row is mapped:
  HashedSecret  -- a bcrypt hash ($2a$ / $2b$ / $2y$ prefix).
  LegacySecret  -- a plaintext value left over from accounts provisioned
                   before hashing was introduced. Accepted for migration
                   compatibility only.
CredentialVerifier (auth/credentials.py) decides how each variant compares.

Layer rule: no imports from api/ or tenants/.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Union

import bcrypt

logger = logging.getLogger("lsaportal.auth")

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


class Role(str, Enum):
    admin_lsa = "admin_lsa"  # association administrators
    admin_spa = "admin_spa"  # spa owners, scoped to one spa
    government_officer = "government_officer"  # third-party read access


_KNOWN_ROLES = frozenset(r.value for r in Role)

# Roles whose authorization additionally depends on their spa's status.
TENANT_SCOPED_ROLES = frozenset({Role.admin_spa.value})


def is_tenant_scoped(role: str) -> bool:
    return role in TENANT_SCOPED_ROLES


def is_known_role(role: str) -> bool:
    """Exact match against Role. "Admin_Spa" is not admin_spa."""
    return role in _KNOWN_ROLES


# ---------------------------------------------------------------------------
# Stored secret variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HashedSecret:
    value: str = field(repr=False)

    def matches(self, candidate: str) -> bool:
        """Constant-time bcrypt comparison. Any bcrypt error is a mismatch."""
        try:
            return bcrypt.checkpw(candidate.encode("utf-8"), self.value.encode("utf-8"))
        except Exception:
            logger.debug("bcrypt comparison raised; treating as mismatch", exc_info=True)
            return False


@dataclass(frozen=True)
class LegacySecret:
    """Plaintext secret from a pre-hashing account. Not a security best practice."""

    value: str = field(repr=False)

    def matches(self, candidate: str) -> bool:
        return hmac.compare_digest(candidate.encode("utf-8"), self.value.encode("utf-8"))


StoredSecret = Union[HashedSecret, LegacySecret]


def parse_stored_secret(raw: str | None) -> StoredSecret | None:
    """Classify the stored credential column. None means the account has no secret."""
    if raw is None or raw == "":
        return None
    if raw.startswith(_BCRYPT_PREFIXES):
        return HashedSecret(raw)
    return LegacySecret(raw)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


@dataclass
class AdminIdentity:
    """One administrative account.

    secret is excluded from repr and from public_dict() so it never reaches
    logs or response bodies. tenant_id is the associated spa; it must be set
    for tenant-scoped roles (see is_consistent()).
    """

    login_name: str
    role: str
    id: int | None = None
    email: str | None = None
    secret: StoredSecret | None = field(default=None, repr=False)
    full_name: str | None = None
    phone: str | None = None
    tenant_id: int | None = None
    is_active: bool = True
    last_login: str | None = None

    @property
    def tenant_scoped(self) -> bool:
        return is_tenant_scoped(self.role)

    def is_consistent(self) -> bool:
        """Role is a known Role, and a tenant-scoped role has a tenant association."""
        if not is_known_role(self.role):
            return False
        return not self.tenant_scoped or self.tenant_id is not None

    def public_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.login_name,
            "email": self.email,
            "role": self.role,
            "full_name": self.full_name,
            "phone": self.phone,
            "spa_id": self.tenant_id,
            "is_active": self.is_active,
            "last_login": self.last_login,
        }


# ---------------------------------------------------------------------------
# Token claims
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims carried by a bearer token.

    issued_at / expires_at are filled in on verification and excluded from
    equality, so verify(issue(claims)) == claims.
    """

    user_id: int
    login_name: str
    role: str
    tenant_id: int | None = None
    issued_at: datetime | None = field(default=None, compare=False)
    expires_at: datetime | None = field(default=None, compare=False)

    @classmethod
    def for_identity(cls, identity: AdminIdentity) -> TokenClaims:
        return cls(
            user_id=identity.id,
            login_name=identity.login_name,
            role=identity.role,
            tenant_id=identity.tenant_id,
        )
