"""CommunityLockerSpace — registry of locker pools keyed by system id.

The registry lock only guards the system map. Pool operations run under
each pool's own lock, so different systems never contend with each other.
Locker ids come from one community-wide counter: unique across systems,
owned per system.
"""

from __future__ import annotations

import logging
import threading

import pydantic

from lockerctl.domain.errors import UnknownLocker, UnknownSystem, ValidationError
from lockerctl.domain.ids import SequenceCounter
from lockerctl.domain.models import Locker, LockerCounts, LockerSystem
from lockerctl.domain.pool import LockerPool
from lockerctl.domain.types import LockerStatus, SizeClass

logger = logging.getLogger(__name__)


class CommunityLockerSpace:
    """All locker systems of one community."""

    def __init__(
        self,
        community_id: str,
        *,
        locker_ids: SequenceCounter | None = None,
        system_ids: SequenceCounter | None = None,
    ) -> None:
        self.community_id = community_id
        self.locker_ids = locker_ids or SequenceCounter()
        self.system_ids = system_ids or SequenceCounter()
        self._systems: dict[int, LockerSystem] = {}
        self._pools: dict[int, LockerPool] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Systems
    # ------------------------------------------------------------------

    def create_system(self, name: str, location: str = "") -> LockerSystem:
        with self._lock:
            system = _build_system(
                id=self.system_ids.next(),
                name=name,
                location=location,
                community_id=self.community_id,
            )
            self._systems[system.id] = system
            self._pools[system.id] = LockerPool(system.id, self.locker_ids.next)
        logger.debug("Created locker system %s (%s)", system.id, system.name)
        return system

    def restore_system(self, system: LockerSystem) -> LockerPool:
        """Register a persisted system with an empty pool ready for restore."""
        with self._lock:
            if system.id in self._systems:
                msg = f"Duplicate locker system id {system.id}"
                raise ValidationError(msg, system_id=system.id)
            self._systems[system.id] = system
            pool = LockerPool(system.id, self.locker_ids.next)
            self._pools[system.id] = pool
            self.system_ids.advance_to(system.id + 1)
        return pool

    def update_system(
        self,
        system_id: int,
        *,
        name: str | None = None,
        location: str | None = None,
    ) -> LockerSystem:
        """Edit a system's name and/or location. Nothing else is mutable."""
        with self._lock:
            current = self.get_system(system_id)
            changes = current.model_dump()
            if name is not None:
                changes["name"] = name
            if location is not None:
                changes["location"] = location
            updated = _build_system(**changes)
            self._systems[system_id] = updated
        return updated

    def delete_system(self, system_id: int) -> LockerSystem:
        """Delete a system whose pool holds no lockers."""
        with self._lock:
            system = self.get_system(system_id)
            self._pools[system_id].retire()
            del self._systems[system_id]
            del self._pools[system_id]
        logger.debug("Deleted locker system %s", system_id)
        return system

    def get_system(self, system_id: int) -> LockerSystem:
        with self._lock:
            system = self._systems.get(system_id)
        if system is None:
            msg = f"No locker system with id {system_id}"
            raise UnknownSystem(msg, system_id=system_id)
        return system

    def list_systems(self) -> list[LockerSystem]:
        with self._lock:
            return [self._systems[key] for key in sorted(self._systems)]

    def pool(self, system_id: int) -> LockerPool:
        with self._lock:
            pool = self._pools.get(system_id)
        if pool is None:
            msg = f"No locker system with id {system_id}"
            raise UnknownSystem(msg, system_id=system_id)
        return pool

    # ------------------------------------------------------------------
    # Pool routing
    # ------------------------------------------------------------------

    def add_lockers(
        self,
        system_id: int,
        count: int,
        size_class: str | SizeClass,
        *,
        columns: int | None = None,
    ) -> list[Locker]:
        return self.pool(system_id).add_lockers(count, size_class, columns=columns)

    def remove_lockers(self, system_id: int, count: int, size_class: str | SizeClass) -> list[int]:
        return self.pool(system_id).remove_lockers(count, size_class)

    def remove_single_locker(self, system_id: int, locker_id: int) -> Locker:
        return self.pool(system_id).remove_single_locker(locker_id)

    def reserve(self, system_id: int, size_class: str | SizeClass) -> int:
        return self.pool(system_id).reserve(size_class)

    def release(self, system_id: int, locker_id: int) -> None:
        self.pool(system_id).release(locker_id)

    def counts(self, system_id: int) -> LockerCounts:
        return self.pool(system_id).counts()

    def get_locker(self, system_id: int, locker_id: int) -> Locker:
        return self.pool(system_id).get(locker_id)

    def list_lockers(
        self,
        system_id: int,
        *,
        size_class: str | SizeClass | None = None,
        status: LockerStatus | None = None,
    ) -> list[Locker]:
        return self.pool(system_id).list_lockers(size_class=size_class, status=status)

    # ------------------------------------------------------------------
    # Community-wide views
    # ------------------------------------------------------------------

    def locate(self, locker_id: int) -> int:
        """Return the id of the system that owns *locker_id*."""
        with self._lock:
            pools = list(self._pools.values())
        for pool in pools:
            if locker_id in pool:
                return pool.system_id
        msg = f"No locker {locker_id} in community {self.community_id}"
        raise UnknownLocker(msg, locker_id=locker_id)

    def summary(self) -> LockerCounts:
        with self._lock:
            pools = list(self._pools.values())
        return LockerCounts.combine([pool.counts() for pool in pools])


def _build_system(**fields: object) -> LockerSystem:
    try:
        return LockerSystem.model_validate(fields)
    except pydantic.ValidationError as exc:
        msg = f"Invalid locker system: {exc.errors()[0]['msg']}"
        raise ValidationError(msg, **{k: str(v) for k, v in fields.items()}) from exc
