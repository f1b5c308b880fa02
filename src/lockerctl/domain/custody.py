"""Open custody index — the open records currently occupying lockers.

Records are indexed by custody id and by locker id. A locker id maps to at
most one open record; ``open()`` refuses a second one, which is what keeps
"occupied ⟺ exactly one open record" from drifting.
"""

from __future__ import annotations

import threading

from lockerctl.domain.errors import LockerNotOccupied, StateConflictError, ValidationError
from lockerctl.domain.models import CustodyRecord


class OpenCustodyIndex:
    """Thread-safe map of open custody records."""

    def __init__(self) -> None:
        self._by_id: dict[str, CustodyRecord] = {}
        self._by_locker: dict[int, str] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)

    def open(self, record: CustodyRecord) -> None:
        if not record.is_open:
            msg = f"Custody record {record.id} is not open"
            raise ValidationError(msg, custody_id=record.id)
        with self._lock:
            if record.id in self._by_id:
                msg = f"Custody record {record.id} is already open"
                raise StateConflictError(msg, custody_id=record.id)
            holder = self._by_locker.get(record.locker_id)
            if holder is not None:
                msg = f"Locker {record.locker_id} already holds custody record {holder}"
                raise StateConflictError(msg, locker_id=record.locker_id, custody_id=holder)
            self._by_id[record.id] = record
            self._by_locker[record.locker_id] = record.id

    def for_locker(self, locker_id: int) -> CustodyRecord:
        """The open record occupying *locker_id*.

        Raises:
            LockerNotOccupied: No open record references the locker.
        """
        with self._lock:
            custody_id = self._by_locker.get(locker_id)
            record = self._by_id.get(custody_id) if custody_id is not None else None
        if record is None:
            msg = f"Locker {locker_id} holds no package"
            raise LockerNotOccupied(msg, locker_id=locker_id)
        return record

    def close(self, custody_id: str) -> CustodyRecord:
        """Drop *custody_id* from the index and return the record as it was."""
        with self._lock:
            record = self._by_id.pop(custody_id, None)
            if record is None:
                msg = f"Custody record {custody_id} is not open"
                raise StateConflictError(msg, custody_id=custody_id)
            del self._by_locker[record.locker_id]
        return record

    def records(
        self,
        *,
        system_id: int | None = None,
        recipient_contact: str | None = None,
    ) -> list[CustodyRecord]:
        """Open records ordered by placement time, optionally filtered."""
        with self._lock:
            records = list(self._by_id.values())
        if system_id is not None:
            records = [r for r in records if r.system_id == system_id]
        if recipient_contact is not None:
            records = [r for r in records if r.recipient_contact == recipient_contact]
        return sorted(records, key=lambda r: (r.placed_at, r.id))
