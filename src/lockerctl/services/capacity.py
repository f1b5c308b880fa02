"""CapacityService — locker systems and their inventory.

Admin operations: create, rename, relocate, and delete systems; add lockers
(optionally as a grid) and remove them in bulk or one at a time. Bulk
removal takes only available lockers and is all-or-nothing.
"""

from __future__ import annotations

import logging
from typing import Any

from lockerctl.domain.errors import LockerError, ValidationError
from lockerctl.domain.types import LockerStatus, SizeClass, parse_size_class
from lockerctl.services.base import BaseService
from lockerctl.services.result import ServiceResult
from lockerctl.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)


class CapacityService(BaseService):
    """Locker system and inventory administration."""

    # ------------------------------------------------------------------
    # Systems
    # ------------------------------------------------------------------

    @traced
    def create_system(self, name: str, location: str = "") -> ServiceResult:
        op = "create_system"
        try:
            with self._community.transaction() as community:
                system = community.space.create_system(name, location)
        except LockerError as exc:
            return ServiceResult.failure(op, exc)
        logger.info("Created locker system %s", system.id)
        return ServiceResult(ok=True, op=op, data=system.model_dump(mode="json"))

    @traced
    def update_system(
        self,
        system_id: int,
        *,
        name: str | None = None,
        location: str | None = None,
    ) -> ServiceResult:
        op = "update_system"
        if name is None and location is None:
            return ServiceResult.failure(
                op, ValidationError("Nothing to update: pass a name or a location")
            )
        try:
            with self._community.transaction() as community:
                system = community.space.update_system(system_id, name=name, location=location)
        except LockerError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data=system.model_dump(mode="json"))

    @traced
    def delete_system(self, system_id: int) -> ServiceResult:
        """Delete a system. Its lockers must have been removed first."""
        op = "delete_system"
        try:
            with self._community.transaction() as community:
                system = community.space.delete_system(system_id)
        except LockerError as exc:
            return ServiceResult.failure(op, exc)
        logger.info("Deleted locker system %s", system_id)
        return ServiceResult(ok=True, op=op, data=system.model_dump(mode="json"))

    @traced
    def list_systems(self) -> ServiceResult:
        op = "list_systems"
        try:
            self._community.refresh()
        except LockerError as exc:
            return ServiceResult.failure(op, exc)
        space = self._community.space
        items = []
        for system in space.list_systems():
            entry = system.model_dump(mode="json")
            entry["counts"] = space.counts(system.id).model_dump()
            items.append(entry)
        return ServiceResult(ok=True, op=op, data={"items": items, "count": len(items)})

    # ------------------------------------------------------------------
    # Lockers
    # ------------------------------------------------------------------

    @traced
    def add_lockers(
        self,
        system_id: int,
        count: int,
        size_class: str | SizeClass,
        *,
        columns: int | None = None,
    ) -> ServiceResult:
        """Add *count* available lockers of one size to a system."""
        op = "add_lockers"
        warnings: list[str] = []
        try:
            with self._community.transaction() as community:
                with trace_span("pool_add"):
                    created = community.space.add_lockers(
                        system_id, count, size_class, columns=columns
                    )
                counts = community.space.counts(system_id)
        except LockerError as exc:
            return ServiceResult.failure(op, exc)

        ids = [locker.id for locker in created]
        logger.info("Added %d lockers to system %s", len(ids), system_id)
        self._dispatch_event(
            "post_capacity_change",
            {"system_id": system_id, "action": "add", "locker_ids": ids},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "system_id": system_id,
                "locker_ids": ids,
                "lockers": [locker.model_dump(mode="json") for locker in created],
                "counts": counts.model_dump(),
            },
            warnings=warnings,
        )

    def add_locker_grid(
        self,
        system_id: int,
        rows: int,
        columns: int,
        size_class: str | SizeClass,
    ) -> ServiceResult:
        """Add a *rows* x *columns* block of lockers of one size."""
        for field, value in (("rows", rows), ("columns", columns)):
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                exc = ValidationError(f"{field} must be a positive integer", **{field: value})
                return ServiceResult.failure("add_lockers", exc)
        return self.add_lockers(system_id, rows * columns, size_class, columns=columns)

    @traced
    def remove_lockers(
        self,
        system_id: int,
        count: int,
        size_class: str | SizeClass,
    ) -> ServiceResult:
        """Remove *count* available lockers of one size, or none at all."""
        op = "remove_lockers"
        warnings: list[str] = []
        try:
            with self._community.transaction() as community:
                removed = community.space.remove_lockers(system_id, count, size_class)
                counts = community.space.counts(system_id)
        except LockerError as exc:
            return ServiceResult.failure(op, exc)

        logger.info("Removed %d lockers from system %s", len(removed), system_id)
        self._dispatch_event(
            "post_capacity_change",
            {"system_id": system_id, "action": "remove", "locker_ids": removed},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "system_id": system_id,
                "locker_ids": removed,
                "counts": counts.model_dump(),
            },
            warnings=warnings,
        )

    @traced
    def remove_single_locker(
        self,
        locker_id: int,
        system_id: int | None = None,
    ) -> ServiceResult:
        """Remove one specific locker; it must be available.

        Without *system_id* the owning system is looked up.
        """
        op = "remove_single_locker"
        warnings: list[str] = []
        try:
            with self._community.transaction() as community:
                if system_id is None:
                    system_id = community.space.locate(locker_id)
                removed = community.space.remove_single_locker(system_id, locker_id)
        except LockerError as exc:
            return ServiceResult.failure(op, exc)

        self._dispatch_event(
            "post_capacity_change",
            {"system_id": system_id, "action": "remove", "locker_ids": [locker_id]},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data=removed.model_dump(mode="json"),
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @traced
    def counts(self, system_id: int) -> ServiceResult:
        op = "counts"
        try:
            self._community.refresh()
            counts = self._community.space.counts(system_id)
        except LockerError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data={"system_id": system_id, **counts.model_dump()})

    @traced
    def summary(self) -> ServiceResult:
        """Counts across every system of the community."""
        try:
            self._community.refresh()
        except LockerError as exc:
            return ServiceResult.failure("summary", exc)
        space = self._community.space
        data: dict[str, Any] = {
            "community_id": space.community_id,
            "systems": len(space.list_systems()),
            **space.summary().model_dump(),
        }
        return ServiceResult(ok=True, op="summary", data=data)

    @traced
    def list_lockers(
        self,
        system_id: int,
        *,
        size_class: str | SizeClass | None = None,
        status: str | LockerStatus | None = None,
    ) -> ServiceResult:
        op = "list_lockers"
        try:
            size = parse_size_class(size_class) if size_class is not None else None
            state = _parse_status(status) if status is not None else None
            self._community.refresh()
            lockers = self._community.space.list_lockers(
                system_id, size_class=size, status=state
            )
        except LockerError as exc:
            return ServiceResult.failure(op, exc)
        items = [locker.model_dump(mode="json") for locker in lockers]
        return ServiceResult(
            ok=True,
            op=op,
            data={"system_id": system_id, "items": items, "count": len(items)},
        )


def _parse_status(value: str | LockerStatus) -> LockerStatus:
    try:
        return LockerStatus(str(value).strip().lower())
    except ValueError as exc:
        choices = ", ".join(s.value for s in LockerStatus)
        msg = f"Unknown locker status {value!r} (expected one of: {choices})"
        raise ValidationError(msg, status=str(value)) from exc
