"""Pydantic models for locker systems, lockers, and custody records.

All models are frozen. State changes produce new instances via
``model_copy(update=...)``; the owning pool or index swaps them in
under its own lock.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from lockerctl.domain.errors import StateConflictError
from lockerctl.domain.lifecycle import CUSTODY_TRANSITIONS, is_valid_transition
from lockerctl.domain.types import CustodyStatus, LockerStatus, SizeClass

# Fields never shown to anyone but the person who placed the package.
_SECRET_FIELDS = frozenset({"otp", "otp_consumed"})


class GridPosition(BaseModel):
    """Display-only position of a locker in its system's grid (1-based)."""

    model_config = {"frozen": True}

    row: int = Field(ge=1)
    column: int = Field(ge=1)


class LockerSystem(BaseModel):
    """A named group of lockers at one physical location."""

    model_config = {"frozen": True, "str_strip_whitespace": True}

    id: int
    name: str = Field(min_length=1)
    location: str = ""
    community_id: str


class Locker(BaseModel):
    model_config = {"frozen": True}

    id: int
    system_id: int
    size_class: SizeClass
    status: LockerStatus = LockerStatus.AVAILABLE
    position: GridPosition | None = None

    @property
    def is_available(self) -> bool:
        return self.status is LockerStatus.AVAILABLE

    def with_status(self, status: LockerStatus) -> Locker:
        return self.model_copy(update={"status": status})


class LockerCounts(BaseModel):
    """Derived inventory counts for one pool (or a whole community)."""

    model_config = {"frozen": True}

    small: int = 0
    medium: int = 0
    large: int = 0
    total: int = 0
    available: int = 0
    occupied: int = 0
    available_by_size: dict[str, int] = Field(
        default_factory=lambda: {str(size): 0 for size in SizeClass}
    )

    @classmethod
    def combine(cls, parts: list[LockerCounts]) -> LockerCounts:
        """Sum several pools' counts into one."""
        by_size = {str(size): 0 for size in SizeClass}
        for part in parts:
            for size, count in part.available_by_size.items():
                by_size[size] = by_size.get(size, 0) + count
        return cls(
            small=sum(p.small for p in parts),
            medium=sum(p.medium for p in parts),
            large=sum(p.large for p in parts),
            total=sum(p.total for p in parts),
            available=sum(p.available for p in parts),
            occupied=sum(p.occupied for p in parts),
            available_by_size=by_size,
        )


class RecipientInfo(BaseModel):
    """Who a package is for and what it is, as entered by staff at intake."""

    model_config = {"frozen": True, "str_strip_whitespace": True}

    name: str = Field(min_length=1)
    contact: str = Field(min_length=1)
    product_ref: str = Field(min_length=1)
    tracking_number: str | None = None
    courier: str | None = None
    comments: str | None = None


class CustodyRecord(BaseModel):
    """One package's residency in a locker, from store to retrieval.

    The OTP lives on the record so a closed record in the ledger is a
    complete audit entry. Views handed to residents omit it.
    """

    model_config = {"frozen": True}

    id: str
    system_id: int
    locker_id: int
    size_class: SizeClass
    recipient_name: str
    recipient_contact: str
    product_ref: str
    tracking_number: str | None = None
    courier: str | None = None
    comments: str | None = None
    placed_by: str
    placed_at: datetime
    otp: str
    otp_consumed: bool = False
    status: CustodyStatus = CustodyStatus.OPEN
    retrieved_by: str | None = None
    retrieved_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status is CustodyStatus.OPEN

    def close(self, *, retrieved_by: str, retrieved_at: datetime) -> CustodyRecord:
        """Return the closed copy of this record.

        Raises:
            StateConflictError: If the record is already closed.
        """
        if not is_valid_transition(str(self.status), "closed", CUSTODY_TRANSITIONS):
            msg = f"Custody record {self.id} is already {self.status}"
            raise StateConflictError(msg, custody_id=self.id)
        return self.model_copy(
            update={
                "status": CustodyStatus.CLOSED,
                "otp_consumed": True,
                "retrieved_by": retrieved_by,
                "retrieved_at": retrieved_at,
            }
        )

    def public_view(self) -> dict[str, Any]:
        """Recipient-facing fields, JSON-ready, without the OTP."""
        return self.model_dump(mode="json", exclude=set(_SECRET_FIELDS))
