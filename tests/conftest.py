"""
tests/conftest.py -- Shared test fixtures for the portal auth tests.

This module provides:
  - make_stores(): AdminStore + TenantStore sharing one engine
  - seed_portal(): a fixed set of spas and accounts covering every status
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - portal: a seeded Portal (stores + ids) on a private in-memory database
  - api_client: (client, portal) -- TestClient on the real app over `portal`

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for
the API fixtures because TestClient runs route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process. Each fixture instance gets a
unique name so tests that change a spa's status cannot leak into each other.

DEBUG and LOGIN_RATE_LIMIT must be set before any app import: get_settings()
auto-generates SECRET_KEY in dev mode, and the default 10/minute login limit
would trip partway through the suite.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set before any api/auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import bcrypt
import pytest
from fastapi.testclient import TestClient

from api.main import app, wire_components
from auth.models import AdminIdentity
from auth.store import AdminStore
from core.config import get_settings
from core.db import make_engine
from tenants.models import TenantRecord
from tenants.store import TenantStore

# Plaintext secrets for the seeded accounts.
OWNER_PASSWORD = "correct-horse-battery"
LEGACY_PASSWORD = "plaintext123"
LSA_PASSWORD = "lsa-admin-pass"


def fast_hash(plain: str) -> str:
    """bcrypt hash with the minimum cost factor, so seeding stays fast."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_stores(db_url: str = "sqlite:///:memory:") -> tuple[AdminStore, TenantStore]:
    """Create both stores on one engine, the way the app lifespan does."""
    engine = make_engine(db_url)
    return AdminStore(engine=engine), TenantStore(engine=engine)


def _shared_memory_url() -> str:
    return f"sqlite:///file:test_lsaportal_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


@dataclass
class Portal:
    """Seeded stores plus the ids tests refer to."""

    admins: AdminStore
    spas: TenantStore
    approved_spa: int
    other_approved_spa: int
    pending_spa: int
    blacklisted_spa: int
    owner_id: int
    legacy_id: int
    other_owner_id: int
    pending_owner_id: int
    blocked_owner_id: int
    lsa_id: int
    officer_id: int
    inactive_id: int
    orphan_id: int


def seed_portal(admins: AdminStore, spas: TenantStore) -> Portal:
    """Insert one spa per status and one account per interesting case.

    Accounts (login name / password):
      owner / OWNER_PASSWORD         admin_spa, approved spa, bcrypt
      spa1 / LEGACY_PASSWORD         admin_spa, approved spa, legacy plaintext
      other-owner / OWNER_PASSWORD   admin_spa, a second approved spa
      pending-owner / OWNER_PASSWORD admin_spa, pending spa
      blocked-owner / OWNER_PASSWORD admin_spa, blacklisted spa
      lsa / LSA_PASSWORD             admin_lsa
      officer / LSA_PASSWORD         government_officer
      retired / LSA_PASSWORD         admin_lsa, inactive
      orphan / OWNER_PASSWORD        admin_spa with no spa assigned
    """
    approved = spas.create_tenant(TenantRecord(name="Ocean Breeze Spa", status="approved"))
    other_approved = spas.create_tenant(TenantRecord(name="Lotus Wellness", status="approved"))
    pending = spas.create_tenant(TenantRecord(name="Green Leaf Spa", status="pending"))
    blacklisted = spas.create_tenant(TenantRecord(name="Sunset Retreat", status="blacklisted"))

    owner_hash = fast_hash(OWNER_PASSWORD)
    lsa_hash = fast_hash(LSA_PASSWORD)

    def add(login_name: str, role: str, stored: str, tenant_id: int | None = None, is_active: bool = True) -> int:
        identity = AdminIdentity(
            login_name=login_name,
            role=role,
            email=f"{login_name}@example.lk",
            full_name=login_name.title(),
            tenant_id=tenant_id,
            is_active=is_active,
        )
        return admins.create_identity(identity, stored)

    return Portal(
        admins=admins,
        spas=spas,
        approved_spa=approved,
        other_approved_spa=other_approved,
        pending_spa=pending,
        blacklisted_spa=blacklisted,
        owner_id=add("owner", "admin_spa", owner_hash, approved),
        legacy_id=add("spa1", "admin_spa", LEGACY_PASSWORD, approved),
        other_owner_id=add("other-owner", "admin_spa", owner_hash, other_approved),
        pending_owner_id=add("pending-owner", "admin_spa", owner_hash, pending),
        blocked_owner_id=add("blocked-owner", "admin_spa", owner_hash, blacklisted),
        lsa_id=add("lsa", "admin_lsa", lsa_hash),
        officer_id=add("officer", "government_officer", lsa_hash),
        inactive_id=add("retired", "admin_lsa", lsa_hash, is_active=False),
        orphan_id=add("orphan", "admin_spa", owner_hash),
    )


def _patch_lifespan(admins: AdminStore, spas: TenantStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state through the same
    wire_components() the real lifespan uses, so the tests exercise the
    production component graph against isolated databases.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        wire_components(app, admins, spas, get_settings())
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stores() -> Generator[tuple[AdminStore, TenantStore], None, None]:
    """Empty stores on a private in-memory database."""
    admins, spas = make_stores()
    yield admins, spas
    admins.close()


@pytest.fixture
def portal(stores: tuple[AdminStore, TenantStore]) -> Portal:
    admins, spas = stores
    return seed_portal(admins, spas)


@pytest.fixture
def api_client() -> Generator[tuple[TestClient, Portal], None, None]:
    """Yield (client, portal) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers but use an isolated, freshly seeded database.
    """
    admins, spas = make_stores(_shared_memory_url())
    portal = seed_portal(admins, spas)

    app.router.lifespan_context = _patch_lifespan(admins, spas)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, portal

    admins.close()


def login(client: TestClient, username: str, password: str) -> str:
    """POST /auth/login and return the bearer token. Fails the test on non-200."""
    resp = client.post("/api/v1/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, f"Login as {username} failed: {resp.status_code} {resp.text}"
    return resp.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
