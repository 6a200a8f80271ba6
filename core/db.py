"""
core/db.py -- Engine construction shared by every store.

The engine (and its connection pool) is process-wide and created once by the
application lifespan or the CLI; stores borrow one connection per operation.
Swapping SQLite for PostgreSQL is a connection string change.

Layer rule: core/ is the kernel. No imports from api/, auth/ or tenants/.
"""

from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an engine, applying the SQLite-specific connection settings."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        # TestClient and FastAPI's threadpool use pooled connections across threads.
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine
