"""Database engine setup for SQLite with WAL mode.

The DB is stored at {site_root}/.lockerctl/lockerctl.db by default.
SQLAlchemy Core (not ORM) is used. The database is shared by every
process of a site and holds the open-state snapshot plus the append-only
ledger; units of work open it with ``BEGIN IMMEDIATE``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event, insert, select
from sqlalchemy.engine import Connection, Engine

from lockerctl.infrastructure.database.schema import COUNTER_KEYS, id_counters, metadata


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled.

    Transactions are begun explicitly. A connection with the
    ``sqlite_begin="IMMEDIATE"`` execution option takes the database write
    lock at ``BEGIN``, so a read-modify-write unit of work cannot interleave
    with another process doing the same.
    """
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        # Let SQLAlchemy emit BEGIN instead of the driver.
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin(conn: Connection) -> None:
        mode = conn.get_execution_options().get("sqlite_begin", "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


def init_database(
    site_root: Path,
    *,
    db_dir: str = ".lockerctl",
    db_name: str = "lockerctl.db",
) -> Engine:
    """Initialize the lockerctl database under ``{site_root}/{db_dir}``.

    Creates the state directory (with a ``plugins/`` folder for local
    plugins), all tables, and seeds ``id_counters``.

    Idempotent — safe to call on an existing site.
    """
    state_dir = site_root / db_dir
    state_dir.mkdir(parents=True, exist_ok=True)
    (state_dir / "plugins").mkdir(exist_ok=True)

    engine = create_db_engine(state_dir / db_name)
    metadata.create_all(engine)
    _seed_counters(engine)
    return engine


def _seed_counters(engine: Engine) -> None:
    """Insert initial counter rows if they don't exist."""
    with engine.begin() as conn:
        for prefix in COUNTER_KEYS:
            row = conn.execute(
                select(id_counters.c.type_prefix).where(id_counters.c.type_prefix == prefix)
            ).first()
            if row is None:
                conn.execute(insert(id_counters).values(type_prefix=prefix, next_value=1))
