"""HistoryService — read access to the custody ledger."""

from __future__ import annotations

from datetime import datetime

from lockerctl.domain.errors import LockerError, ValidationError
from lockerctl.domain.ledger import as_utc
from lockerctl.services._helpers import parse_moment
from lockerctl.services.base import BaseService
from lockerctl.services.result import ServiceResult
from lockerctl.services.telemetry import traced


def _coerce_moment(field: str, value: str | datetime | None) -> datetime | None:
    """Bounds as aware UTC datetimes; naive input counts as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    try:
        return parse_moment(value)
    except ValueError as exc:
        msg = f"{field} must be an ISO date or datetime, got {value!r}"
        raise ValidationError(msg, **{field: value}) from exc


class HistoryService(BaseService):
    """Completed custody records, oldest retrieval first."""

    @traced
    def query(
        self,
        *,
        system_id: int | None = None,
        since: str | datetime | None = None,
        until: str | datetime | None = None,
    ) -> ServiceResult:
        """Ledger entries retrieved in ``[since, until)``, optionally for one system.

        A system deleted since its packages were retrieved can still be
        queried; its history outlives it.
        """
        op = "history"
        try:
            start = _coerce_moment("since", since)
            end = _coerce_moment("until", until)
            if start is not None and end is not None and end < start:
                msg = "until must not be earlier than since"
                raise ValidationError(msg, since=str(start), until=str(end))
        except LockerError as exc:
            return ServiceResult.failure(op, exc)

        records = self._community.ledger.query(system_id=system_id, since=start, until=end)
        items = [record.public_view() for record in records]
        return ServiceResult(ok=True, op=op, data={"items": items, "count": len(items)})
