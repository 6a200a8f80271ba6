"""
tenants/store.py -- SQLAlchemy Core access to the spa status table.

The spa table belongs to the registration subsystem. The request path of this
service only ever calls get_tenant(); create_tenant() and set_status() exist
for the provisioning CLI and tests, standing in for the registration flow.

Security: all queries use bound parameters. No f-strings in SQL.

Layer rule: imports only core/ and third-party libraries.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table
from sqlalchemy.engine import Engine

from core.config import DEFAULT_DATABASE_URL
from core.db import make_engine
from tenants.models import TenantRecord

_metadata = MetaData()

_spas = Table(
    "spas",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("status", String(30), nullable=False, server_default="pending"),
    Column("updated_at", String(32)),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TenantStore:
    """Repository for spa records.

    Usage:
        store = TenantStore("sqlite:///:memory:")
        spa_id = store.create_tenant(TenantRecord(name="Ocean Spa", status="pending"))
        store.get_tenant(spa_id).status   # "pending"
    """

    def __init__(self, db_url: str = DEFAULT_DATABASE_URL, engine: Engine | None = None) -> None:
        self.engine: Engine = engine if engine is not None else make_engine(db_url)
        _metadata.create_all(self.engine)

    def get_tenant(self, tenant_id: int) -> TenantRecord | None:
        """Read the current record. Returns None if no spa has this id."""
        with self.engine.connect() as conn:
            row = conn.execute(_spas.select().where(_spas.c.id == tenant_id)).fetchone()
        return _row_to_tenant(row) if row is not None else None

    # ------------------------------------------------------------------
    # Provisioning (CLI and tests only)
    # ------------------------------------------------------------------

    def create_tenant(self, tenant: TenantRecord) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(
                _spas.insert().values(name=tenant.name, status=tenant.status, updated_at=_now_iso())
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def set_status(self, tenant_id: int, status: str) -> bool:
        """Overwrite the status column. Returns False if the spa does not exist."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _spas.update().where(_spas.c.id == tenant_id).values(status=status, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


def _row_to_tenant(row) -> TenantRecord:
    return TenantRecord(id=row.id, name=row.name, status=row.status)
