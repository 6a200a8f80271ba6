"""Unit tests for auth/tokens.py -- bearer token issue and verification.

Covers:
- verify(issue(claims)) returns the same claims, with and without a spa id
- default lifetime is 24 hours
- expired, tampered, foreign-key and malformed tokens are rejected
- a well-signed token with missing claims is rejected
- two issues for the same identity produce different tokens
"""

from datetime import timedelta

import pytest
from jose import jwt

from auth.models import AdminIdentity, TokenClaims
from auth.tokens import TokenIssuer, TokenVerifier
from core.errors import TokenExpired, TokenInvalid

KEY = "k" * 64
OTHER_KEY = "z" * 64


@pytest.fixture
def issuer():
    return TokenIssuer(KEY)


@pytest.fixture
def verifier():
    return TokenVerifier(KEY)


class TestRoundTrip:
    @pytest.mark.parametrize(
        "claims",
        [
            TokenClaims(user_id=7, login_name="owner", role="admin_spa", tenant_id=42),
            TokenClaims(user_id=1, login_name="lsa", role="admin_lsa", tenant_id=None),
        ],
    )
    def test_verify_returns_issued_claims(self, issuer, verifier, claims):
        assert verifier.verify(issuer.issue(claims)) == claims

    def test_claims_from_identity(self, issuer, verifier):
        identity = AdminIdentity(id=3, login_name="owner", role="admin_spa", tenant_id=9)
        claims = verifier.verify(issuer.issue(TokenClaims.for_identity(identity)))
        assert (claims.user_id, claims.login_name, claims.role, claims.tenant_id) == (3, "owner", "admin_spa", 9)

    def test_default_lifetime_is_24_hours(self, issuer, verifier):
        claims = verifier.verify(issuer.issue(TokenClaims(user_id=1, login_name="lsa", role="admin_lsa")))
        assert claims.expires_at - claims.issued_at == timedelta(hours=24)

    def test_each_issue_is_a_new_token(self, issuer):
        claims = TokenClaims(user_id=1, login_name="lsa", role="admin_lsa")
        assert issuer.issue(claims) != issuer.issue(claims)


class TestRejection:
    def test_expired_token(self, verifier):
        expired_issuer = TokenIssuer(KEY, lifetime=timedelta(seconds=-120))
        token = expired_issuer.issue(TokenClaims(user_id=1, login_name="lsa", role="admin_lsa"))
        with pytest.raises(TokenExpired):
            verifier.verify(token)

    def test_token_signed_with_other_key(self, verifier):
        token = TokenIssuer(OTHER_KEY).issue(TokenClaims(user_id=1, login_name="lsa", role="admin_lsa"))
        with pytest.raises(TokenInvalid):
            verifier.verify(token)

    def test_tampered_payload(self, issuer, verifier):
        token = issuer.issue(TokenClaims(user_id=7, login_name="owner", role="admin_spa", tenant_id=42))
        forged = jwt.encode(
            {"sub": "owner", "user_id": 7, "role": "admin_spa", "tenant_id": 43},
            OTHER_KEY,
            algorithm="HS256",
        )
        header, _payload, signature = token.split(".")
        spliced = ".".join([header, forged.split(".")[1], signature])
        with pytest.raises(TokenInvalid):
            verifier.verify(spliced)

    @pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
    def test_malformed_token(self, verifier, token):
        with pytest.raises(TokenInvalid):
            verifier.verify(token)

    def test_missing_claims(self, verifier):
        token = jwt.encode({"sub": "owner"}, KEY, algorithm="HS256")
        with pytest.raises(TokenInvalid):
            verifier.verify(token)

    def test_non_integer_spa_id(self, verifier):
        token = jwt.encode(
            {"sub": "owner", "user_id": 7, "role": "admin_spa", "tenant_id": "42"},
            KEY,
            algorithm="HS256",
        )
        with pytest.raises(TokenInvalid):
            verifier.verify(token)


def test_empty_signing_key_refused():
    with pytest.raises(ValueError):
        TokenIssuer("")
    with pytest.raises(ValueError):
        TokenVerifier("")
