"""
core/database.py -- Shared SQLAlchemy engine factory and schema metadata.

Uses SQLAlchemy Core (not ORM) so the dataclasses in auth/models.py and
mappings/models.py stay the authoritative domain representation. Both
tables hang off the single `metadata` object below so the data_mappings
foreign key can reference users.id.

The users table is declared in auth/store.py and data_mappings in
mappings/store.py; each store module registers its Table on this metadata
at import time. create_schema() must therefore run after both are imported
(context.py takes care of that).

Layer rule: no imports from api/, auth/, or mappings/.
"""

from __future__ import annotations

from sqlalchemy import MetaData, create_engine, event, text
from sqlalchemy.engine import Engine

metadata = MetaData()


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. foreign_keys is off by default in SQLite.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_url: str) -> Engine:
    """Build an Engine for db_url with SQLite-specific connection setup."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        # Sync FastAPI handlers run in a threadpool; the engine is shared.
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def create_schema(engine: Engine) -> None:
    """Create any missing tables. Idempotent -- safe on every startup."""
    metadata.create_all(engine)


def ping(engine: Engine) -> bool:
    """Return True if the database answers a trivial query."""
    with engine.connect() as conn:
        return conn.execute(text("SELECT 1")).scalar() == 1
