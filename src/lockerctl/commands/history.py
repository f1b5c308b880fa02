"""Command: custody history."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from lockerctl.commands._base import LockerCommand
from lockerctl.services.history import HistoryService

if TYPE_CHECKING:
    from lockerctl.commands._context import AppContext


@click.command(
    cls=LockerCommand,
    examples="""\
  lockerctl history
  lockerctl history --system 1
  lockerctl history --since 2025-05-01 --until 2025-06-01
  lockerctl --json history --since 2025-05-04T08:00:00""",
)
@click.option("--system", "system_id", default=None, type=int, help="Only this system.")
@click.option("--since", default=None, help="Retrieved at or after (ISO date or datetime).")
@click.option("--until", default=None, help="Retrieved before (ISO date or datetime).")
@click.pass_obj
def history(
    app: AppContext,
    system_id: int | None,
    since: str | None,
    until: str | None,
) -> None:
    """List completed pickups, oldest first."""
    svc = HistoryService(app.community)
    app.emit(svc.query(system_id=system_id, since=since, until=until))
