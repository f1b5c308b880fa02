"""SqlCustodyLedger — durable append-only ledger on the ``custody_ledger`` table.

Inside a unit of work the ledger is bound to that unit's connection, so a
closed record commits together with the snapshot that releases its
locker. Unbound appends commit in a transaction of their own.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, insert, select
from sqlalchemy.exc import IntegrityError

from lockerctl.domain.errors import StateConflictError
from lockerctl.domain.ledger import check_appendable
from lockerctl.infrastructure.database.records import (
    closed_record_to_row,
    row_to_record,
    to_utc_iso,
)
from lockerctl.infrastructure.database.schema import custody_ledger

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

    from lockerctl.domain.models import CustodyRecord


class SqlCustodyLedger:
    """Ledger backed by SQLite via SQLAlchemy Core."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        # SQLite allows a single writer.
        self._write_lock = threading.Lock()
        self._bound = threading.local()

    @contextmanager
    def bind(self, conn: Connection) -> Iterator[None]:
        """Route this thread's reads and appends through *conn*."""
        previous = getattr(self._bound, "conn", None)
        self._bound.conn = conn
        try:
            yield
        finally:
            self._bound.conn = previous

    @contextmanager
    def _reading(self) -> Iterator[Connection]:
        bound = getattr(self._bound, "conn", None)
        if bound is not None:
            yield bound
            return
        with self._engine.connect() as conn:
            yield conn

    def __len__(self) -> int:
        with self._reading() as conn:
            return int(conn.execute(select(func.count()).select_from(custody_ledger)).scalar_one())

    def append(self, record: CustodyRecord) -> None:
        check_appendable(record)
        stmt = insert(custody_ledger).values(**closed_record_to_row(record))
        bound = getattr(self._bound, "conn", None)
        try:
            if bound is not None:
                # Savepoint keeps the unit's transaction usable after a conflict.
                with bound.begin_nested():
                    bound.execute(stmt)
            else:
                with self._write_lock, self._engine.begin() as conn:
                    conn.execute(stmt)
        except IntegrityError as exc:
            msg = f"Custody record {record.id} is already in the ledger"
            raise StateConflictError(msg, custody_id=record.id) from exc

    def query(
        self,
        *,
        system_id: int | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[CustodyRecord]:
        """Closed records ordered by retrieval time."""
        stmt = select(custody_ledger)
        if system_id is not None:
            stmt = stmt.where(custody_ledger.c.system_id == system_id)
        if since is not None:
            stmt = stmt.where(custody_ledger.c.retrieved_at >= to_utc_iso(since))
        if until is not None:
            stmt = stmt.where(custody_ledger.c.retrieved_at < to_utc_iso(until))
        stmt = stmt.order_by(custody_ledger.c.retrieved_at, custody_ledger.c.id)
        with self._reading() as conn:
            rows = conn.execute(stmt).all()
        return [row_to_record(row) for row in rows]

    def latest_for_locker(self, locker_id: int) -> CustodyRecord | None:
        stmt = (
            select(custody_ledger)
            .where(custody_ledger.c.locker_id == locker_id)
            .order_by(custody_ledger.c.retrieved_at.desc(), custody_ledger.c.id.desc())
            .limit(1)
        )
        with self._reading() as conn:
            row = conn.execute(stmt).first()
        return row_to_record(row) if row is not None else None
