"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime

from lockerctl.domain.ledger import as_utc


def now_utc() -> datetime:
    """Current time as an aware UTC datetime (placement/retrieval stamps)."""
    return datetime.now(UTC)


def parse_moment(value: str) -> datetime:
    """Parse an ISO date or datetime; naive values are taken as UTC.

    Examples:
        >>> parse_moment("2025-05-04").isoformat()
        '2025-05-04T00:00:00+00:00'
        >>> parse_moment("2025-05-04T10:30:00+02:00").isoformat()
        '2025-05-04T08:30:00+00:00'
    """
    return as_utc(datetime.fromisoformat(value))
