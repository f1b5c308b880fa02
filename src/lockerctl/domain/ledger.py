"""CustodyLedger — append-only history of closed custody records.

The in-memory ledger here is the default. A durable SQLite-backed ledger
with the same interface lives in :mod:`lockerctl.infrastructure.ledger`.

INVARIANT: Entries are frozen records; nothing is updated or deleted
after append.
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Protocol

from lockerctl.domain.errors import StateConflictError, ValidationError
from lockerctl.domain.models import CustodyRecord


class Ledger(Protocol):
    """Interface shared by every ledger backend."""

    def append(self, record: CustodyRecord) -> None: ...

    def query(
        self,
        *,
        system_id: int | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[CustodyRecord]: ...

    def latest_for_locker(self, locker_id: int) -> CustodyRecord | None: ...

    def __len__(self) -> int: ...


def check_appendable(record: CustodyRecord) -> None:
    """Only closed records with a retrieval time may enter a ledger."""
    if record.is_open or record.retrieved_at is None:
        msg = f"Custody record {record.id} is still open and cannot be archived"
        raise ValidationError(msg, custody_id=record.id)


def as_utc(moment: datetime) -> datetime:
    """*moment* as an aware UTC datetime. Naive values are taken as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def in_range(
    moment: datetime,
    since: datetime | None,
    until: datetime | None,
) -> bool:
    """``since <= moment < until``, with either bound optional.

    All three are compared in UTC; naive values count as UTC.
    """
    moment = as_utc(moment)
    if since is not None and moment < as_utc(since):
        return False
    if until is not None and moment >= as_utc(until):
        return False
    return True


class CustodyLedger:
    """In-memory ledger."""

    def __init__(self) -> None:
        self._entries: list[CustodyRecord] = []
        self._ids: set[str] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def append(self, record: CustodyRecord) -> None:
        check_appendable(record)
        with self._lock:
            if record.id in self._ids:
                msg = f"Custody record {record.id} is already in the ledger"
                raise StateConflictError(msg, custody_id=record.id)
            self._entries.append(record)
            self._ids.add(record.id)

    def query(
        self,
        *,
        system_id: int | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[CustodyRecord]:
        """Closed records ordered by retrieval time."""
        with self._lock:
            entries = list(self._entries)
        matches = [
            r
            for r in entries
            if (system_id is None or r.system_id == system_id)
            and r.retrieved_at is not None
            and in_range(r.retrieved_at, since, until)
        ]
        return sorted(matches, key=_retrieval_order)

    def latest_for_locker(self, locker_id: int) -> CustodyRecord | None:
        with self._lock:
            entries = [r for r in self._entries if r.locker_id == locker_id]
        if not entries:
            return None
        return max(entries, key=_retrieval_order)


def _retrieval_order(record: CustodyRecord) -> tuple[datetime, str]:
    # Only closed records reach a ledger, so retrieved_at is set.
    return (as_utc(record.retrieved_at or record.placed_at), record.id)
