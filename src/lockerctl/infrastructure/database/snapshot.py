"""Snapshot persistence for the in-memory locker state.

The whole open state (systems, lockers, open custody records, id
counters) is rewritten by :meth:`SnapshotStore.save` and rebuilt by
:meth:`SnapshotStore.load`, normally on the connection of the unit of work
that holds the write lock. Closed records are not part of the snapshot;
they go to the ledger table in that same transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select, update

from lockerctl.infrastructure.database.records import (
    locker_to_row,
    open_record_to_row,
    row_to_locker,
    row_to_record,
    row_to_system,
    system_to_row,
)
from lockerctl.infrastructure.database.schema import (
    custody_open,
    id_counters,
    locker_systems,
    lockers,
)

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from lockerctl.domain.custody import OpenCustodyIndex
    from lockerctl.domain.ids import SequenceCounter
    from lockerctl.domain.otp import OTPAuthenticator
    from lockerctl.domain.space import CommunityLockerSpace

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Loads and saves the open locker state of one community."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def load(
        self,
        space: CommunityLockerSpace,
        custody: OpenCustodyIndex,
        otp: OTPAuthenticator,
        custody_ids: SequenceCounter,
        *,
        conn: Connection | None = None,
    ) -> None:
        """Rebuild *space*, *custody*, and *otp* from the database.

        The targets must be empty. Counters only ever move forward. Pass
        *conn* to read inside an open unit of work.
        """
        with self._connection(conn, write=False) as conn:
            systems = conn.execute(select(locker_systems).order_by(locker_systems.c.id)).all()
            locker_rows = conn.execute(select(lockers).order_by(lockers.c.id)).all()
            open_rows = conn.execute(select(custody_open).order_by(custody_open.c.id)).all()
            counters = _read_counters(conn)

        pools = {row.id: space.restore_system(row_to_system(row)) for row in systems}
        for row in locker_rows:
            pools[row.system_id].restore(row_to_locker(row))
        for row in open_rows:
            record = row_to_record(row)
            custody.open(record)
            otp.restore(record.id, record.otp)

        space.locker_ids.advance_to(counters.get("LOCKER", 1))
        space.system_ids.advance_to(counters.get("SYSTEM", 1))
        custody_ids.advance_to(counters.get("PKG-", 1))
        logger.debug(
            "Loaded snapshot: %d systems, %d lockers, %d open records",
            len(systems),
            len(locker_rows),
            len(open_rows),
        )

    def save(
        self,
        space: CommunityLockerSpace,
        custody: OpenCustodyIndex,
        custody_ids: SequenceCounter,
        *,
        conn: Connection | None = None,
    ) -> None:
        """Replace the stored snapshot with the current in-memory state.

        With *conn* the rows are written into that transaction and
        committed by its owner; otherwise in a transaction of their own.
        """
        systems = space.list_systems()
        locker_rows = [
            locker_to_row(locker)
            for system in systems
            for locker in space.list_lockers(system.id)
        ]
        open_rows = [open_record_to_row(record) for record in custody.records()]
        counters = {
            "LOCKER": space.locker_ids.peek(),
            "SYSTEM": space.system_ids.peek(),
            "PKG-": custody_ids.peek(),
        }

        with self._connection(conn, write=True) as conn:
            conn.execute(delete(custody_open))
            conn.execute(delete(lockers))
            conn.execute(delete(locker_systems))
            if systems:
                conn.execute(insert(locker_systems), [system_to_row(s) for s in systems])
            if locker_rows:
                conn.execute(insert(lockers), locker_rows)
            if open_rows:
                conn.execute(insert(custody_open), open_rows)
            for prefix, value in counters.items():
                conn.execute(
                    update(id_counters)
                    .where(id_counters.c.type_prefix == prefix)
                    .values(next_value=value)
                )

    @contextmanager
    def _connection(self, conn: Connection | None, *, write: bool) -> Iterator[Connection]:
        if conn is not None:
            yield conn
        elif write:
            with self._engine.begin() as own:
                yield own
        else:
            with self._engine.connect() as own:
                yield own


def _read_counters(conn: Connection) -> dict[str, int]:
    rows = conn.execute(select(id_counters.c.type_prefix, id_counters.c.next_value)).all()
    return {row.type_prefix: row.next_value for row in rows}
