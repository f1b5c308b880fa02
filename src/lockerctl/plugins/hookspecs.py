"""Pluggy hook specifications for custody and capacity events.

Hooks run synchronously after the state change has been committed. They
are where an integrator hands the OTP to a notifier (SMS, e-mail);
lockerctl itself delivers nothing.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("lockerctl")
hookimpl = pluggy.HookimplMarker("lockerctl")


class LockerctlHookSpec:
    """Hook specifications for the lockerctl plugin system."""

    @hookspec
    def post_store(
        self,
        custody_id: str,
        system_id: int,
        locker_id: int,
        recipient_name: str,
        recipient_contact: str,
        otp: str,
    ) -> None:
        """Called after a package is placed in a locker."""

    @hookspec
    def post_retrieve(
        self,
        custody_id: str,
        system_id: int,
        locker_id: int,
        retrieved_by: str,
    ) -> None:
        """Called after a package is collected and its record archived."""

    @hookspec
    def post_capacity_change(
        self,
        system_id: int,
        action: str,
        locker_ids: list[int],
    ) -> None:
        """Called after lockers are added to or removed from a system."""
