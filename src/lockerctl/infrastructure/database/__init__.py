"""SQLite database engine, schema, and snapshot store via SQLAlchemy Core."""

from lockerctl.infrastructure.database.engine import create_db_engine, init_database
from lockerctl.infrastructure.database.schema import (
    custody_ledger,
    custody_open,
    id_counters,
    locker_systems,
    lockers,
    metadata,
)
from lockerctl.infrastructure.database.snapshot import SnapshotStore

__all__ = [
    "SnapshotStore",
    "create_db_engine",
    "custody_ledger",
    "custody_open",
    "id_counters",
    "init_database",
    "locker_systems",
    "lockers",
    "metadata",
]
