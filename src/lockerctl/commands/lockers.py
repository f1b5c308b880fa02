"""Command group: locker inventory."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from lockerctl.commands._base import LockerGroup
from lockerctl.domain.types import LockerStatus, SizeClass
from lockerctl.services.capacity import CapacityService

if TYPE_CHECKING:
    from lockerctl.commands._context import AppContext

_SIZE_CHOICE = click.Choice([s.value for s in SizeClass], case_sensitive=False)
_STATUS_CHOICE = click.Choice([s.value for s in LockerStatus], case_sensitive=False)

_LOCKERS_EXAMPLES = """\
  lockerctl lockers add 1 --count 4 --size small
  lockerctl lockers add-grid 1 --rows 3 --columns 4 --size medium
  lockerctl lockers remove 1 --count 2 --size small
  lockerctl lockers remove-one 7
  lockerctl lockers counts 1
  lockerctl lockers summary
  lockerctl lockers list 1 --status available"""


@click.group(cls=LockerGroup, examples=_LOCKERS_EXAMPLES)
@click.pass_obj
def lockers(app: AppContext) -> None:
    """Add, remove, and inspect lockers."""


@lockers.command(
    examples="""\
  lockerctl lockers add 1 --count 4 --size small
  lockerctl lockers add 1 --count 6 --size large --columns 3"""
)
@click.argument("system_id", type=int)
@click.option("--count", required=True, type=int, help="Number of lockers to add.")
@click.option("--size", "size_class", required=True, type=_SIZE_CHOICE, help="Locker size.")
@click.option("--columns", default=None, type=int, help="Lay the new lockers out in rows.")
@click.pass_obj
def add(
    app: AppContext,
    system_id: int,
    count: int,
    size_class: str,
    columns: int | None,
) -> None:
    """Add available lockers of one size to a system."""
    svc = CapacityService(app.community)
    app.emit(svc.add_lockers(system_id, count, size_class, columns=columns))


@lockers.command(
    name="add-grid",
    examples="""\
  lockerctl lockers add-grid 1 --size medium
  lockerctl lockers add-grid 1 --rows 3 --columns 4 --size small""",
)
@click.argument("system_id", type=int)
@click.option("--rows", default=None, type=int, help="Grid rows (default from [grid]).")
@click.option("--columns", default=None, type=int, help="Grid columns (default from [grid]).")
@click.option("--size", "size_class", required=True, type=_SIZE_CHOICE, help="Locker size.")
@click.pass_obj
def add_grid(
    app: AppContext,
    system_id: int,
    rows: int | None,
    columns: int | None,
    size_class: str,
) -> None:
    """Add a rows x columns block of lockers."""
    grid = app.settings.grid
    svc = CapacityService(app.community)
    app.emit(
        svc.add_locker_grid(
            system_id,
            rows if rows is not None else grid.default_rows,
            columns if columns is not None else grid.default_columns,
            size_class,
        )
    )


@lockers.command(
    examples="""\
  lockerctl lockers remove 1 --count 2 --size small"""
)
@click.argument("system_id", type=int)
@click.option("--count", required=True, type=int, help="Number of lockers to remove.")
@click.option("--size", "size_class", required=True, type=_SIZE_CHOICE, help="Locker size.")
@click.pass_obj
def remove(app: AppContext, system_id: int, count: int, size_class: str) -> None:
    """Remove available lockers of one size. All or nothing."""
    app.emit(CapacityService(app.community).remove_lockers(system_id, count, size_class))


@lockers.command(
    name="remove-one",
    examples="""\
  lockerctl lockers remove-one 7
  lockerctl lockers remove-one 7 --system 1""",
)
@click.argument("locker_id", type=int)
@click.option("--system", "system_id", default=None, type=int, help="Owning system id.")
@click.pass_obj
def remove_one(app: AppContext, locker_id: int, system_id: int | None) -> None:
    """Remove one specific, available locker."""
    svc = CapacityService(app.community)
    app.emit(svc.remove_single_locker(locker_id, system_id=system_id))


@lockers.command(
    examples="""\
  lockerctl lockers counts 1"""
)
@click.argument("system_id", type=int)
@click.pass_obj
def counts(app: AppContext, system_id: int) -> None:
    """Show size and availability counts for one system."""
    app.emit(CapacityService(app.community).counts(system_id))


@lockers.command()
@click.pass_obj
def summary(app: AppContext) -> None:
    """Show counts across the whole community."""
    app.emit(CapacityService(app.community).summary())


@lockers.command(
    name="list",
    examples="""\
  lockerctl lockers list 1
  lockerctl lockers list 1 --size large --status available""",
)
@click.argument("system_id", type=int)
@click.option("--size", "size_class", default=None, type=_SIZE_CHOICE, help="Filter by size.")
@click.option("--status", default=None, type=_STATUS_CHOICE, help="Filter by status.")
@click.pass_obj
def list_cmd(
    app: AppContext,
    system_id: int,
    size_class: str | None,
    status: str | None,
) -> None:
    """List the lockers of a system."""
    svc = CapacityService(app.community)
    app.emit(svc.list_lockers(system_id, size_class=size_class, status=status))
