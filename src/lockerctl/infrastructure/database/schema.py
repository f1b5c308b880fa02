"""SQLAlchemy Core table definitions for the lockerctl database.

Timestamps are stored as UTC ISO-8601 text with microsecond precision so
lexical order equals chronological order.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Column, ForeignKey, Index, Integer, MetaData, Table, Text

metadata = MetaData()

locker_systems = Table(
    "locker_systems",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("name", Text, nullable=False),
    Column("location", Text, nullable=False, default="", server_default=""),
    Column("community_id", Text, nullable=False),
)

lockers = Table(
    "lockers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("system_id", Integer, ForeignKey("locker_systems.id"), nullable=False),
    Column("size_class", Text, nullable=False),
    Column("status", Text, nullable=False),
    Column("grid_row", Integer),  # display only
    Column("grid_column", Integer),
)


def _custody_columns() -> list[Column[Any]]:
    """Columns shared by open and archived custody records."""
    return [
        Column("id", Text, primary_key=True),
        Column("system_id", Integer, nullable=False),
        Column("locker_id", Integer, nullable=False),
        Column("size_class", Text, nullable=False),
        Column("recipient_name", Text, nullable=False),
        Column("recipient_contact", Text, nullable=False),
        Column("product_ref", Text, nullable=False),
        Column("tracking_number", Text),
        Column("courier", Text),
        Column("comments", Text),
        Column("placed_by", Text, nullable=False),
        Column("placed_at", Text, nullable=False),
        Column("otp", Text, nullable=False),
    ]


custody_open = Table(
    "custody_open",
    metadata,
    *_custody_columns(),
)

custody_ledger = Table(
    "custody_ledger",
    metadata,
    *_custody_columns(),
    Column("otp_consumed", Integer, nullable=False, default=1, server_default="1"),
    Column("status", Text, nullable=False),
    Column("retrieved_by", Text, nullable=False),
    Column("retrieved_at", Text, nullable=False),
)

Index("ix_lockers_system", lockers.c.system_id)
Index("ux_custody_open_locker", custody_open.c.locker_id, unique=True)
Index("ix_custody_ledger_retrieved", custody_ledger.c.retrieved_at)
Index("ix_custody_ledger_system", custody_ledger.c.system_id)
Index("ix_custody_ledger_locker", custody_ledger.c.locker_id)

id_counters = Table(
    "id_counters",
    metadata,
    Column("type_prefix", Text, primary_key=True),
    Column("next_value", Integer, nullable=False, default=1, server_default="1"),
)

# Counter keys persisted in id_counters.
COUNTER_KEYS = ("LOCKER", "SYSTEM", "PKG-")
