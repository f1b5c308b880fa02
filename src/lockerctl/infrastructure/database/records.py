"""Conversions between domain models and table rows."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from lockerctl.domain.errors import ValidationError
from lockerctl.domain.ledger import as_utc
from lockerctl.domain.models import CustodyRecord, GridPosition, Locker, LockerSystem
from lockerctl.domain.types import CustodyStatus, LockerStatus, SizeClass

_OPEN_FIELDS = (
    "id",
    "system_id",
    "locker_id",
    "recipient_name",
    "recipient_contact",
    "product_ref",
    "tracking_number",
    "courier",
    "comments",
    "placed_by",
    "otp",
)


def to_utc_iso(moment: datetime) -> str:
    """UTC ISO-8601 with fixed microsecond precision (naive means UTC)."""
    return as_utc(moment).isoformat(timespec="microseconds")


def from_iso(value: str) -> datetime:
    return datetime.fromisoformat(value)


def system_to_row(system: LockerSystem) -> dict[str, Any]:
    return system.model_dump()


def row_to_system(row: Any) -> LockerSystem:
    return LockerSystem(
        id=row.id,
        name=row.name,
        location=row.location,
        community_id=row.community_id,
    )


def locker_to_row(locker: Locker) -> dict[str, Any]:
    position = locker.position
    return {
        "id": locker.id,
        "system_id": locker.system_id,
        "size_class": str(locker.size_class),
        "status": str(locker.status),
        "grid_row": position.row if position else None,
        "grid_column": position.column if position else None,
    }


def row_to_locker(row: Any) -> Locker:
    position = None
    if row.grid_row is not None and row.grid_column is not None:
        position = GridPosition(row=row.grid_row, column=row.grid_column)
    return Locker(
        id=row.id,
        system_id=row.system_id,
        size_class=SizeClass(row.size_class),
        status=LockerStatus(row.status),
        position=position,
    )


def open_record_to_row(record: CustodyRecord) -> dict[str, Any]:
    values = {name: getattr(record, name) for name in _OPEN_FIELDS}
    values["size_class"] = str(record.size_class)
    values["placed_at"] = to_utc_iso(record.placed_at)
    return values


def closed_record_to_row(record: CustodyRecord) -> dict[str, Any]:
    if record.retrieved_at is None:
        msg = f"Custody record {record.id} has no retrieval time"
        raise ValidationError(msg, custody_id=record.id)
    values = open_record_to_row(record)
    values.update(
        otp_consumed=int(record.otp_consumed),
        status=str(record.status),
        retrieved_by=record.retrieved_by,
        retrieved_at=to_utc_iso(record.retrieved_at),
    )
    return values


def row_to_record(row: Any) -> CustodyRecord:
    """Build a CustodyRecord from a ``custody_open`` or ``custody_ledger`` row."""
    mapping = row._mapping
    fields: dict[str, Any] = {name: mapping[name] for name in _OPEN_FIELDS}
    fields["size_class"] = SizeClass(mapping["size_class"])
    fields["placed_at"] = from_iso(mapping["placed_at"])
    if "retrieved_at" in mapping:
        fields.update(
            otp_consumed=bool(mapping["otp_consumed"]),
            status=CustodyStatus(mapping["status"]),
            retrieved_by=mapping["retrieved_by"],
            retrieved_at=from_iso(mapping["retrieved_at"]),
        )
    return CustodyRecord(**fields)
