"""PackageCustodyService — package intake and retrieval.

Intake:    reserve locker → issue OTP → open custody record
Retrieval: find open record → verify OTP → archive to ledger → close → release

This service is the only writer of locker occupancy and custody records.
The OTP is returned to the caller of ``store`` (for out-of-band delivery)
and handed to ``post_store`` plugins; it is never logged.
"""

from __future__ import annotations

import hmac
import logging
from typing import Any

import pydantic

from lockerctl.domain.errors import (
    InvalidOTP,
    LockerError,
    LockerNotOccupied,
    ValidationError,
)
from lockerctl.domain.ids import format_custody_id
from lockerctl.domain.models import CustodyRecord, RecipientInfo
from lockerctl.domain.types import SizeClass, parse_size_class
from lockerctl.services._helpers import now_utc
from lockerctl.services.base import BaseService
from lockerctl.services.result import ServiceResult
from lockerctl.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)


def _coerce_recipient(recipient: RecipientInfo | dict[str, Any]) -> RecipientInfo:
    if isinstance(recipient, RecipientInfo):
        return recipient
    try:
        return RecipientInfo.model_validate(recipient)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        msg = f"Invalid recipient {field}: {first['msg']}"
        raise ValidationError(msg, field=field) from exc


def _require_actor(field: str, value: str) -> str:
    cleaned = value.strip() if isinstance(value, str) else ""
    if not cleaned:
        msg = f"{field} is required"
        raise ValidationError(msg, field=field)
    return cleaned


class PackageCustodyService(BaseService):
    """Stores packages in lockers and releases them against a valid OTP."""

    @traced
    def store(
        self,
        system_id: int,
        size_class: str | SizeClass,
        recipient: RecipientInfo | dict[str, Any],
        placed_by: str,
    ) -> ServiceResult:
        """Place a package in a free locker of exactly *size_class*.

        On success ``data`` holds ``custody_id``, ``locker_id`` and the
        ``otp`` to pass to the recipient. Nothing is created on failure.
        """
        op = "store"
        warnings: list[str] = []
        community = self._community

        try:
            info = _coerce_recipient(recipient)
            actor = _require_actor("placed_by", placed_by)
            size = parse_size_class(size_class)

            with community.transaction():
                with trace_span("reserve"):
                    locker_id = community.space.reserve(system_id, size)
                custody_id = format_custody_id(community.next_custody_id())
                try:
                    with trace_span("issue_otp"):
                        code = community.otp.issue(custody_id)
                    record = CustodyRecord(
                        id=custody_id,
                        system_id=system_id,
                        locker_id=locker_id,
                        size_class=size,
                        recipient_name=info.name,
                        recipient_contact=info.contact,
                        product_ref=info.product_ref,
                        tracking_number=info.tracking_number,
                        courier=info.courier,
                        comments=info.comments,
                        placed_by=actor,
                        placed_at=now_utc(),
                        otp=code,
                    )
                    community.custody.open(record)
                except Exception:
                    community.otp.discard(custody_id)
                    community.space.release(system_id, locker_id)
                    raise
        except LockerError as exc:
            logger.info("Store rejected for system %s: %s", system_id, exc.code)
            return ServiceResult.failure(op, exc)

        logger.info("Stored %s in locker %s (system %s)", record.id, locker_id, system_id)
        self._dispatch_event(
            "post_store",
            {
                "custody_id": record.id,
                "system_id": system_id,
                "locker_id": locker_id,
                "recipient_name": record.recipient_name,
                "recipient_contact": record.recipient_contact,
                "otp": record.otp,
            },
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "custody_id": record.id,
                "system_id": system_id,
                "locker_id": locker_id,
                "size_class": str(size),
                "otp": record.otp,
                "placed_at": record.placed_at.isoformat(),
            },
            warnings=warnings,
        )

    @traced
    def request_retrieval(self, locker_id: int) -> ServiceResult:
        """Recipient-facing view of the package in *locker_id* (no OTP)."""
        op = "request_retrieval"
        try:
            self._community.refresh()
            record = self._community.custody.for_locker(locker_id)
        except LockerError as exc:
            return ServiceResult.failure(op, exc)
        return ServiceResult(ok=True, op=op, data=record.public_view())

    @traced
    def verify_and_retrieve(
        self,
        locker_id: int,
        otp: str,
        retrieved_by: str,
    ) -> ServiceResult:
        """Release the package in *locker_id* if *otp* is its unused code.

        A wrong or already-used code fails with ``INVALID_OTP`` and changes
        nothing. On success the closed record is in the ledger before this
        method returns.
        """
        op = "verify_and_retrieve"
        warnings: list[str] = []
        community = self._community

        try:
            actor = _require_actor("retrieved_by", retrieved_by)
            with community.transaction():
                try:
                    record = community.custody.for_locker(locker_id)
                except LockerNotOccupied:
                    self._reject_replay(locker_id, otp)
                    raise

                with trace_span("verify_otp"):
                    if not community.otp.verify(record.id, otp):
                        msg = f"Invalid code for locker {locker_id}"
                        raise InvalidOTP(msg, locker_id=locker_id)

                closed = record.close(retrieved_by=actor, retrieved_at=now_utc())
                try:
                    with trace_span("ledger_append"):
                        community.ledger.append(closed)
                except Exception:
                    # Re-arm the code so the recipient can try again.
                    community.otp.discard(record.id)
                    community.otp.restore(record.id, record.otp)
                    raise
                community.custody.close(record.id)
                community.space.release(record.system_id, locker_id)
                community.otp.discard(record.id)
        except LockerError as exc:
            logger.info("Retrieval rejected for locker %s: %s", locker_id, exc.code)
            return ServiceResult.failure(op, exc)

        logger.info("Retrieved %s from locker %s", closed.id, locker_id)
        self._dispatch_event(
            "post_retrieve",
            {
                "custody_id": closed.id,
                "system_id": closed.system_id,
                "locker_id": locker_id,
                "retrieved_by": actor,
            },
            warnings,
        )
        return ServiceResult(ok=True, op=op, data=closed.public_view(), warnings=warnings)

    @traced
    def list_open(
        self,
        *,
        system_id: int | None = None,
        recipient_contact: str | None = None,
    ) -> ServiceResult:
        """Packages waiting in lockers, e.g. one resident's pending pickups."""
        op = "list_open"
        try:
            self._community.refresh()
            if system_id is not None:
                self._community.space.get_system(system_id)
        except LockerError as exc:
            return ServiceResult.failure(op, exc)
        records = self._community.custody.records(
            system_id=system_id,
            recipient_contact=recipient_contact,
        )
        items = [record.public_view() for record in records]
        return ServiceResult(ok=True, op=op, data={"items": items, "count": len(items)})

    def _reject_replay(self, locker_id: int, otp: str) -> None:
        """Raise InvalidOTP if *otp* is the code already used on this locker."""
        last = self._community.ledger.latest_for_locker(locker_id)
        if last is None or not isinstance(otp, str):
            return
        if hmac.compare_digest(last.otp.encode(), otp.encode()):
            msg = f"The code for locker {locker_id} has already been used"
            raise InvalidOTP(msg, locker_id=locker_id, custody_id=last.id)
