"""Tests for OpenCustodyIndex."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from lockerctl.domain.custody import OpenCustodyIndex
from lockerctl.domain.errors import LockerNotOccupied, StateConflictError, ValidationError
from lockerctl.domain.models import CustodyRecord
from lockerctl.domain.types import SizeClass

T0 = datetime(2025, 5, 4, 9, 0, tzinfo=UTC)


def _record(**overrides: Any) -> CustodyRecord:
    fields: dict[str, Any] = {
        "id": "PKG-0001",
        "system_id": 1,
        "locker_id": 1,
        "size_class": SizeClass.SMALL,
        "recipient_name": "Ana Ruiz",
        "recipient_contact": "ana@example.org",
        "product_ref": "Book",
        "placed_by": "concierge",
        "placed_at": T0,
        "otp": "482913",
    }
    fields.update(overrides)
    return CustodyRecord(**fields)


class TestOpenCustodyIndex:
    def test_open_and_lookup(self) -> None:
        index = OpenCustodyIndex()
        record = _record()
        index.open(record)
        assert index.for_locker(1) == record
        assert len(index) == 1

    def test_lookup_empty_locker(self) -> None:
        with pytest.raises(LockerNotOccupied):
            OpenCustodyIndex().for_locker(1)

    def test_one_open_record_per_locker(self) -> None:
        index = OpenCustodyIndex()
        index.open(_record())
        with pytest.raises(StateConflictError):
            index.open(_record(id="PKG-0002"))
        assert index.for_locker(1).id == "PKG-0001"

    def test_duplicate_id(self) -> None:
        index = OpenCustodyIndex()
        index.open(_record())
        with pytest.raises(StateConflictError):
            index.open(_record(locker_id=2))

    def test_refuses_closed_record(self) -> None:
        closed = _record().close(retrieved_by="Ana", retrieved_at=T0)
        with pytest.raises(ValidationError):
            OpenCustodyIndex().open(closed)

    def test_close_frees_locker(self) -> None:
        index = OpenCustodyIndex()
        index.open(_record())
        assert index.close("PKG-0001").id == "PKG-0001"
        with pytest.raises(LockerNotOccupied):
            index.for_locker(1)
        index.open(_record(id="PKG-0002"))

    def test_close_twice(self) -> None:
        index = OpenCustodyIndex()
        index.open(_record())
        index.close("PKG-0001")
        with pytest.raises(StateConflictError):
            index.close("PKG-0001")

    def test_records_filtered_and_ordered(self) -> None:
        index = OpenCustodyIndex()
        index.open(_record(id="PKG-0002", locker_id=2, placed_at=T0 + timedelta(minutes=5)))
        index.open(_record(id="PKG-0001", locker_id=1))
        index.open(
            _record(id="PKG-0003", locker_id=3, system_id=2, recipient_contact="bo@example.org")
        )
        assert [r.id for r in index.records()] == ["PKG-0001", "PKG-0003", "PKG-0002"]
        assert [r.id for r in index.records(system_id=1)] == ["PKG-0001", "PKG-0002"]
        assert [r.id for r in index.records(recipient_contact="bo@example.org")] == ["PKG-0003"]
