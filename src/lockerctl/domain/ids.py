"""ID patterns, OTP format, and sequential counters.

Two ID strategies:
- Integer sequences (lockers, systems): community-wide, monotonically assigned.
- Prefixed sequences (custody records): ``PKG-0001``, minimum 4 digits.

INVARIANT: IDs are permanent and never reused, including after deletion.
"""

from __future__ import annotations

import re
import threading

CUSTODY_PREFIX = "PKG-"

ID_PATTERNS: dict[str, re.Pattern[str]] = {
    "custody": re.compile(r"^PKG-\d{4,}$"),
}

OTP_PATTERN = re.compile(r"[0-9]{6}")
OTP_MIN = 100000
OTP_MAX = 999999


class SequenceCounter:
    """Thread-safe monotonic counter.

    ``peek()`` exposes the next value so the counter can be persisted and
    restored without ever handing out the same number twice.
    """

    def __init__(self, start: int = 1) -> None:
        self._next = start
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def peek(self) -> int:
        with self._lock:
            return self._next

    def advance_to(self, value: int) -> None:
        """Move the counter forward to at least *value* (never backward)."""
        with self._lock:
            if value > self._next:
                self._next = value


def format_custody_id(value: int) -> str:
    """Render a custody sequence number as ``PKG-NNNN``."""
    return f"{CUSTODY_PREFIX}{value:04d}"


def validate_id(value: str, kind: str) -> bool:
    """Check whether *value* matches the expected pattern for *kind*."""
    pattern = ID_PATTERNS.get(kind)
    if pattern is None:
        return False
    return pattern.match(value) is not None


def is_well_formed_otp(code: str) -> bool:
    """Six ASCII digits within ``[OTP_MIN, OTP_MAX]``."""
    if not isinstance(code, str) or OTP_PATTERN.fullmatch(code) is None:
        return False
    return OTP_MIN <= int(code) <= OTP_MAX
