"""Size classes and status enums for lockers and custody records."""

from __future__ import annotations

from enum import StrEnum


class SizeClass(StrEnum):
    """Locker compartment sizes. Packages are matched exactly, never substituted."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class LockerStatus(StrEnum):
    """Occupancy status of a single locker."""

    AVAILABLE = "available"
    OCCUPIED = "occupied"


class CustodyStatus(StrEnum):
    """A custody record is open while the package sits in a locker."""

    OPEN = "open"
    CLOSED = "closed"


def parse_size_class(value: str | SizeClass) -> SizeClass:
    """Coerce *value* to a :class:`SizeClass`.

    Raises:
        ValidationError: If *value* names no known size.
    """
    from lockerctl.domain.errors import ValidationError

    try:
        return SizeClass(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(str(s) for s in SizeClass)
        msg = f"Unknown size class {value!r}. Expected one of: {allowed}"
        raise ValidationError(msg, size_class=str(value)) from None
