"""
auth/credentials.py -- Login name / secret verification and bcrypt helpers.

CredentialVerifier.verify() is read-only: it never stamps last_login or
otherwise mutates the account. The caller (AccessGate) owns side effects.

Security design:
  [C1] Timing equalization. When the login name does not exist (or the
       account is inactive) we still run bcrypt against _DUMMY_HASH, so
       response time does not reveal whether the account exists. Both cases
       raise the same InvalidCredentials as a wrong secret.

  Legacy plaintext secrets are compared with hmac.compare_digest. The path
  exists only so accounts provisioned before hashing can still log in; every
  use is logged as a warning so operators can find and rehash them
  (see `python main.py hash-secret`). The dummy bcrypt round runs on this
  path too, so response time does not reveal which accounts are unmigrated.

  Login name and secret lengths are capped here; longer input is a
  ValidationError (400).

Layer rule: no imports from api/ or tenants/.
"""

from __future__ import annotations

import logging

import bcrypt

from auth.models import AdminIdentity, HashedSecret, LegacySecret
from auth.store import AdminStore
from core.errors import InvalidCredentials, ValidationError

logger = logging.getLogger("lsaportal.auth")


def hash_secret(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext secret."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


# Computed once at module load so the first failed login is not measurably
# slower than later ones.
_DUMMY_HASH = HashedSecret(hash_secret("lsaportal_timing_dummy"))

MAX_LOGIN_NAME_LENGTH = 100
MAX_SECRET_LENGTH = 255


class CredentialVerifier:
    """Validate a claimed login name / secret pair against the admin store."""

    def __init__(self, store: AdminStore) -> None:
        self._store = store

    def verify(self, login_name: str, secret: str) -> AdminIdentity:
        """Return the matching active identity or raise InvalidCredentials.

        Raises ValidationError if either input is empty or too long.
        """
        if not login_name or not secret:
            raise ValidationError()
        if len(login_name) > MAX_LOGIN_NAME_LENGTH or len(secret) > MAX_SECRET_LENGTH:
            raise ValidationError("Username or password is too long")

        identity = self._store.get_active_by_login_name(login_name)
        if identity is None or identity.secret is None:
            _DUMMY_HASH.matches(secret)
            raise InvalidCredentials()

        stored = identity.secret
        if isinstance(stored, LegacySecret):
            logger.warning("Legacy plaintext secret used for user_id=%s; rehash this account", identity.id)
            _DUMMY_HASH.matches(secret)
        matched = stored.matches(secret)
        if not matched:
            logger.info("Credential mismatch for user_id=%s", identity.id)
            raise InvalidCredentials()
        return identity
