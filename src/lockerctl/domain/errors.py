"""Typed domain errors.

Every error carries a stable machine ``code`` and a human-readable message.
The service layer converts them into :class:`ServiceError` payloads; nothing
in the core terminates the process on these.

INVARIANT: An operation that raises has left state unchanged.
"""

from __future__ import annotations

from typing import Any


class LockerError(Exception):
    """Base class for all recoverable locker/custody errors."""

    code: str = "LOCKER_ERROR"

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail


# --- Input ---


class ValidationError(LockerError):
    """Malformed or missing input."""

    code = "VALIDATION_FAILED"


# --- Capacity ---


class CapacityError(LockerError):
    code = "CAPACITY_ERROR"


class InsufficientCapacity(CapacityError):
    """Fewer available lockers than a bulk removal asked for."""

    code = "INSUFFICIENT_CAPACITY"


class NoLockerAvailable(CapacityError):
    """No available locker of the requested size in the pool."""

    code = "NO_LOCKER_AVAILABLE"


# --- State conflicts ---


class StateConflictError(LockerError):
    code = "STATE_CONFLICT"


class LockerOccupied(StateConflictError):
    code = "LOCKER_OCCUPIED"


class LockerNotOccupied(StateConflictError):
    code = "LOCKER_NOT_OCCUPIED"


class SystemNotEmpty(StateConflictError):
    code = "SYSTEM_NOT_EMPTY"


class OTPAlreadyIssued(StateConflictError):
    code = "OTP_ALREADY_ISSUED"


# --- Auth ---


class AuthError(LockerError):
    code = "AUTH_ERROR"


class InvalidOTP(AuthError):
    """Supplied code does not match, or was already consumed."""

    code = "INVALID_OTP"


# --- Lookup ---


class UnknownSystem(LockerError):
    code = "UNKNOWN_SYSTEM"


class UnknownLocker(LockerError):
    code = "UNKNOWN_LOCKER"


# --- Storage ---


class PersistenceError(LockerError):
    """The unit of work could not be committed; nothing was stored."""

    code = "PERSISTENCE_FAILED"
