"""LockerPool — the lockers of one locker system.

Inventory is kept as per-size free lists (ascending locker ids) plus
running totals, so counts and availability lookups never scan the pool.

INVARIANT: reserve, release, and every capacity mutation run under the
pool's single lock. No two reservations can select the same locker and a
locker can never be removed while a reservation is choosing it.
"""

from __future__ import annotations

import bisect
import logging
import threading
from collections.abc import Callable

from lockerctl.domain.errors import (
    InsufficientCapacity,
    LockerNotOccupied,
    LockerOccupied,
    NoLockerAvailable,
    SystemNotEmpty,
    UnknownLocker,
    UnknownSystem,
    ValidationError,
)
from lockerctl.domain.lifecycle import is_removable
from lockerctl.domain.models import GridPosition, Locker, LockerCounts
from lockerctl.domain.types import LockerStatus, SizeClass, parse_size_class

logger = logging.getLogger(__name__)


def _require_positive(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        msg = f"{name} must be a positive integer, got {value!r}"
        raise ValidationError(msg, **{name: value})


class LockerPool:
    """Owns the lockers of one system and their size-class inventory.

    Parameters:
        system_id: The owning locker system.
        id_source: Callable returning the next community-wide locker id.
    """

    def __init__(self, system_id: int, id_source: Callable[[], int]) -> None:
        self.system_id = system_id
        self._next_id = id_source
        self._lockers: dict[int, Locker] = {}
        self._free: dict[SizeClass, list[int]] = {size: [] for size in SizeClass}
        self._totals: dict[SizeClass, int] = {size: 0 for size in SizeClass}
        self._occupied = 0
        self._retired = False
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._lockers)

    def __contains__(self, locker_id: object) -> bool:
        with self._lock:
            return locker_id in self._lockers

    # ------------------------------------------------------------------
    # Capacity administration
    # ------------------------------------------------------------------

    def add_lockers(
        self,
        count: int,
        size_class: str | SizeClass,
        *,
        columns: int | None = None,
    ) -> list[Locker]:
        """Append *count* new available lockers of *size_class*.

        With *columns*, the new lockers are laid out row by row starting
        below the pool's current last row.
        """
        _require_positive("count", count)
        if columns is not None:
            _require_positive("columns", columns)
        size = parse_size_class(size_class)

        with self._lock:
            self._check_active()
            start_row = self._last_row() + 1
            created: list[Locker] = []
            for index in range(count):
                position = None
                if columns is not None:
                    position = GridPosition(
                        row=start_row + index // columns,
                        column=index % columns + 1,
                    )
                locker = Locker(
                    id=self._next_id(),
                    system_id=self.system_id,
                    size_class=size,
                    position=position,
                )
                self._insert(locker)
                created.append(locker)

        logger.debug("Added %d %s lockers to system %s", count, size, self.system_id)
        return created

    def remove_lockers(self, count: int, size_class: str | SizeClass) -> list[int]:
        """Remove the *count* highest-id available lockers of *size_class*.

        All-or-nothing: nothing is removed unless *count* are available.

        Returns:
            The removed locker ids, highest first.

        Raises:
            InsufficientCapacity: Fewer than *count* matching lockers are available.
        """
        _require_positive("count", count)
        size = parse_size_class(size_class)

        with self._lock:
            free = self._free[size]
            if len(free) < count:
                msg = (
                    f"Cannot remove {count} {size} lockers from system {self.system_id}: "
                    f"only {len(free)} available"
                )
                raise InsufficientCapacity(
                    msg,
                    system_id=self.system_id,
                    size_class=str(size),
                    requested=count,
                    available=len(free),
                )
            removed = free[-count:]
            del free[-count:]
            for locker_id in removed:
                del self._lockers[locker_id]
            self._totals[size] -= count

        logger.debug("Removed %d %s lockers from system %s", count, size, self.system_id)
        return sorted(removed, reverse=True)

    def remove_single_locker(self, locker_id: int) -> Locker:
        """Delete one locker by id. Only available lockers can be removed."""
        with self._lock:
            locker = self._get(locker_id)
            if not is_removable(locker.status):
                msg = f"Locker {locker_id} is occupied and cannot be removed"
                raise LockerOccupied(msg, locker_id=locker_id, system_id=self.system_id)
            free = self._free[locker.size_class]
            del free[bisect.bisect_left(free, locker_id)]
            del self._lockers[locker_id]
            self._totals[locker.size_class] -= 1
        return locker

    # ------------------------------------------------------------------
    # Occupancy
    # ------------------------------------------------------------------

    def reserve(self, size_class: str | SizeClass) -> int:
        """Claim the lowest-id available locker of *size_class*.

        Raises:
            NoLockerAvailable: No available locker of that exact size.
        """
        size = parse_size_class(size_class)
        with self._lock:
            self._check_active()
            free = self._free[size]
            if not free:
                msg = f"No {size} locker available in system {self.system_id}"
                raise NoLockerAvailable(msg, system_id=self.system_id, size_class=str(size))
            locker_id = free.pop(0)
            self._lockers[locker_id] = self._lockers[locker_id].with_status(LockerStatus.OCCUPIED)
            self._occupied += 1
        return locker_id

    def release(self, locker_id: int) -> None:
        """Return an occupied locker to the available pool."""
        with self._lock:
            locker = self._lockers.get(locker_id)
            if locker is None or locker.is_available:
                msg = f"Locker {locker_id} is not occupied"
                raise LockerNotOccupied(msg, locker_id=locker_id, system_id=self.system_id)
            self._lockers[locker_id] = locker.with_status(LockerStatus.AVAILABLE)
            bisect.insort(self._free[locker.size_class], locker_id)
            self._occupied -= 1

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------

    def counts(self) -> LockerCounts:
        with self._lock:
            available = {str(size): len(ids) for size, ids in self._free.items()}
            total = sum(self._totals.values())
            return LockerCounts(
                small=self._totals[SizeClass.SMALL],
                medium=self._totals[SizeClass.MEDIUM],
                large=self._totals[SizeClass.LARGE],
                total=total,
                available=sum(available.values()),
                occupied=self._occupied,
                available_by_size=available,
            )

    def get(self, locker_id: int) -> Locker:
        with self._lock:
            return self._get(locker_id)

    def list_lockers(
        self,
        *,
        size_class: str | SizeClass | None = None,
        status: LockerStatus | None = None,
    ) -> list[Locker]:
        """Lockers ordered by id, optionally filtered by size and status."""
        size = parse_size_class(size_class) if size_class is not None else None
        with self._lock:
            lockers = sorted(self._lockers.values(), key=lambda lk: lk.id)
        if size is not None:
            lockers = [lk for lk in lockers if lk.size_class is size]
        if status is not None:
            lockers = [lk for lk in lockers if lk.status is status]
        return lockers

    # ------------------------------------------------------------------
    # Rehydration
    # ------------------------------------------------------------------

    def restore(self, locker: Locker) -> None:
        """Insert a previously persisted locker, keeping its id and status."""
        if locker.system_id != self.system_id:
            msg = f"Locker {locker.id} belongs to system {locker.system_id}, not {self.system_id}"
            raise ValidationError(msg, locker_id=locker.id)
        with self._lock:
            if locker.id in self._lockers:
                msg = f"Duplicate locker id {locker.id}"
                raise ValidationError(msg, locker_id=locker.id)
            self._insert(locker)

    def retire(self) -> None:
        """Close the pool for good. Only an empty pool can be retired.

        After retirement, additions and reservations fail with
        :class:`UnknownSystem` even for callers still holding a reference.
        """
        with self._lock:
            if self._lockers:
                msg = (
                    f"System {self.system_id} still has {len(self._lockers)} lockers; "
                    "remove them before deleting the system"
                )
                raise SystemNotEmpty(msg, system_id=self.system_id, lockers=len(self._lockers))
            self._retired = True

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _get(self, locker_id: int) -> Locker:
        locker = self._lockers.get(locker_id)
        if locker is None:
            msg = f"No locker {locker_id} in system {self.system_id}"
            raise UnknownLocker(msg, locker_id=locker_id, system_id=self.system_id)
        return locker

    def _insert(self, locker: Locker) -> None:
        self._lockers[locker.id] = locker
        self._totals[locker.size_class] += 1
        if locker.is_available:
            bisect.insort(self._free[locker.size_class], locker.id)
        else:
            self._occupied += 1

    def _check_active(self) -> None:
        if self._retired:
            msg = f"Locker system {self.system_id} has been deleted"
            raise UnknownSystem(msg, system_id=self.system_id)

    def _last_row(self) -> int:
        rows = [lk.position.row for lk in self._lockers.values() if lk.position is not None]
        return max(rows, default=0)
