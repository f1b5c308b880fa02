"""OTPAuthenticator — single-use 6-digit codes bound to custody records.

Codes are drawn with :mod:`secrets` from ``[100000, 999999]`` and are
unique among pending (unconsumed) codes. Consumed bindings stay until the
custody service discards them after closing the record.

INVARIANT: verify() compares and consumes in one step under the
authenticator's lock, so a code can succeed at most once.
"""

from __future__ import annotations

import hmac
import secrets
import threading
from dataclasses import dataclass

from lockerctl.domain.errors import CapacityError, OTPAlreadyIssued, ValidationError
from lockerctl.domain.ids import OTP_MAX, OTP_MIN, is_well_formed_otp


@dataclass
class _Binding:
    code: str
    consumed: bool = False


def draw_code() -> str:
    """A uniformly random code in ``[OTP_MIN, OTP_MAX]``."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


class OTPAuthenticator:
    """Issues and verifies one code per custody record.

    Parameters:
        max_attempts: Redraws allowed when a fresh code collides with a
            pending one before giving up.
    """

    def __init__(self, *, max_attempts: int = 64) -> None:
        self._bindings: dict[str, _Binding] = {}
        self._pending_codes: set[str] = set()
        self._max_attempts = max_attempts
        self._lock = threading.Lock()

    def issue(self, custody_id: str) -> str:
        """Bind a fresh code to *custody_id* and return it.

        Raises:
            OTPAlreadyIssued: *custody_id* already has a code.
        """
        with self._lock:
            if custody_id in self._bindings:
                msg = f"A code was already issued for {custody_id}"
                raise OTPAlreadyIssued(msg, custody_id=custody_id)
            for _ in range(self._max_attempts):
                code = draw_code()
                if code not in self._pending_codes:
                    break
            else:
                msg = "Could not draw a code distinct from all pending codes"
                raise CapacityError(msg, custody_id=custody_id)
            self._bindings[custody_id] = _Binding(code=code)
            self._pending_codes.add(code)
        return code

    def verify(self, custody_id: str, supplied: str) -> bool:
        """Consume the code bound to *custody_id* if *supplied* matches.

        Returns False, without mutating anything, on mismatch, on an
        already-consumed code, or for an unknown custody id.
        """
        if not is_well_formed_otp(supplied):
            return False
        with self._lock:
            binding = self._bindings.get(custody_id)
            if binding is None or binding.consumed:
                return False
            if not hmac.compare_digest(binding.code, supplied):
                return False
            binding.consumed = True
            self._pending_codes.discard(binding.code)
        return True

    def is_pending(self, custody_id: str) -> bool:
        with self._lock:
            binding = self._bindings.get(custody_id)
            return binding is not None and not binding.consumed

    def discard(self, custody_id: str) -> None:
        """Forget the binding for *custody_id* once its record is closed or abandoned."""
        with self._lock:
            binding = self._bindings.pop(custody_id, None)
            if binding is not None and not binding.consumed:
                self._pending_codes.discard(binding.code)

    def restore(self, custody_id: str, code: str) -> None:
        """Re-create the pending binding of a persisted open record."""
        if not is_well_formed_otp(code):
            msg = f"Stored code for {custody_id} is not a 6-digit OTP"
            raise ValidationError(msg, custody_id=custody_id)
        with self._lock:
            if custody_id in self._bindings:
                msg = f"A code was already issued for {custody_id}"
                raise OTPAlreadyIssued(msg, custody_id=custody_id)
            self._bindings[custody_id] = _Binding(code=code)
            self._pending_codes.add(code)
