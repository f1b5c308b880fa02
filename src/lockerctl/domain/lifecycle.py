"""Locker and custody lifecycles.

Locker: ``available --store--> occupied --retrieve--> available``.
Capacity operations only ever touch lockers in the ``available`` state.

Custody: ``open --retrieve--> closed``. Closed records are terminal.
"""

from __future__ import annotations

from lockerctl.domain.types import CustodyStatus, LockerStatus

LOCKER_TRANSITIONS: dict[str, list[str]] = {
    "available": ["occupied"],
    "occupied": ["available"],
}

CUSTODY_TRANSITIONS: dict[str, list[str]] = {
    "open": ["closed"],
    "closed": [],
}


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]],
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    allowed = transitions.get(current, [])
    return target in allowed


def is_removable(status: LockerStatus) -> bool:
    """Only available lockers may be removed from a pool."""
    return status is LockerStatus.AVAILABLE


def is_terminal(status: CustodyStatus) -> bool:
    """A closed custody record can never change again."""
    return not CUSTODY_TRANSITIONS[str(status)]
