"""
auth/store.py -- SQLAlchemy Core persistence layer for admin identities.

Pattern: Repository + Data Mapper. AdminStore is the repository;
_row_to_identity is the mapper. Route, gate and dependency code never touches
SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Lookups used for authentication filter on is_active = 1 in SQL, so an
  inactive account is indistinguishable from a missing one.

Resources:
  Every method acquires one pooled connection with `with engine.connect()`,
  which returns it to the pool on every exit path including exceptions.

Layer rule: no imports from api/ or tenants/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from auth.models import AdminIdentity, parse_stored_secret
from core.config import DEFAULT_DATABASE_URL
from core.db import make_engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_admin_users = Table(
    "admin_users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(100), nullable=False, unique=True),
    Column("email", String(255)),
    Column("password_hash", Text, nullable=False),  # bcrypt hash or legacy plaintext
    Column("role", String(30), nullable=False),
    Column("full_name", String(255)),
    Column("phone", String(30)),
    Column("spa_id", Integer),  # required for admin_spa
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("last_login", String(32)),  # ISO 8601
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AdminStore:
    """Repository for AdminIdentity records.

    Usage:
        store = AdminStore()
        store.create_identity(AdminIdentity(login_name="lsa", role="admin_lsa"), "$2b$12$...")
        identity = store.get_active_by_login_name("lsa")
        store.close()
    """

    def __init__(self, db_url: str = DEFAULT_DATABASE_URL, engine: Engine | None = None) -> None:
        self.engine: Engine = engine if engine is not None else make_engine(db_url)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Authentication lookups
    # ------------------------------------------------------------------

    def get_active_by_login_name(self, login_name: str) -> AdminIdentity | None:
        """Exact, case-sensitive match on an active account. None if absent or inactive."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _admin_users.select().where(
                    (_admin_users.c.username == login_name) & (_admin_users.c.is_active == 1)
                )
            ).fetchone()
        return _row_to_identity(row) if row is not None else None

    def get_active_by_id(self, user_id: int) -> AdminIdentity | None:
        """Fresh re-fetch used by token verification. None if absent or inactive."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _admin_users.select().where((_admin_users.c.id == user_id) & (_admin_users.c.is_active == 1))
            ).fetchone()
        return _row_to_identity(row) if row is not None else None

    def update_last_login(self, user_id: int) -> None:
        """Stamp the current UTC time as last_login. The only write login performs."""
        with self.engine.connect() as conn:
            conn.execute(_admin_users.update().where(_admin_users.c.id == user_id).values(last_login=_now_iso()))
            conn.commit()

    # ------------------------------------------------------------------
    # Provisioning (CLI and tests only)
    # ------------------------------------------------------------------

    def create_identity(self, identity: AdminIdentity, stored_secret: str) -> int:
        """Insert an account and return its id.

        stored_secret is written verbatim: pass a bcrypt hash, or a plaintext
        value to reproduce an unmigrated legacy account. Raises
        sqlalchemy.exc.IntegrityError if the login name already exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _admin_users.insert().values(
                    username=identity.login_name,
                    email=identity.email,
                    password_hash=stored_secret,
                    role=identity.role,
                    full_name=identity.full_name,
                    phone=identity.phone,
                    spa_id=identity.tenant_id,
                    is_active=1 if identity.is_active else 0,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def set_active(self, user_id: int, is_active: bool) -> bool:
        """Flip the active flag. Returns False if user_id was not found."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _admin_users.update().where(_admin_users.c.id == user_id).values(is_active=1 if is_active else 0)
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_identity(row) -> AdminIdentity:
    return AdminIdentity(
        id=row.id,
        login_name=row.username,
        email=row.email,
        secret=parse_stored_secret(row.password_hash),
        role=row.role,
        full_name=row.full_name,
        phone=row.phone,
        tenant_id=row.spa_id,
        is_active=bool(row.is_active),
        last_login=row.last_login,
    )
