"""Command group: locker system administration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from lockerctl.commands._base import LockerGroup
from lockerctl.services.capacity import CapacityService

if TYPE_CHECKING:
    from lockerctl.commands._context import AppContext

_SYSTEM_EXAMPLES = """\
  lockerctl system create "Lobby" --location "Building A, ground floor"
  lockerctl system list
  lockerctl system update 1 --name "Lobby East"
  lockerctl system delete 2"""


@click.group(cls=LockerGroup, examples=_SYSTEM_EXAMPLES)
@click.pass_obj
def system(app: AppContext) -> None:
    """Create, edit, list, and delete locker systems."""


@system.command(
    examples="""\
  lockerctl system create "Garage" --location "Level -1"
  lockerctl --json system create Lobby"""
)
@click.argument("name")
@click.option("--location", default="", help="Where the system is installed.")
@click.pass_obj
def create(app: AppContext, name: str, location: str) -> None:
    """Register a new, empty locker system."""
    app.emit(CapacityService(app.community).create_system(name, location))


@system.command(
    examples="""\
  lockerctl system update 1 --location "Building B"
  lockerctl system update 1 --name Lobby"""
)
@click.argument("system_id", type=int)
@click.option("--name", default=None, help="New name.")
@click.option("--location", default=None, help="New location.")
@click.pass_obj
def update(app: AppContext, system_id: int, name: str | None, location: str | None) -> None:
    """Rename or relocate a system."""
    svc = CapacityService(app.community)
    app.emit(svc.update_system(system_id, name=name, location=location))


@system.command(
    examples="""\
  lockerctl system delete 2"""
)
@click.argument("system_id", type=int)
@click.pass_obj
def delete(app: AppContext, system_id: int) -> None:
    """Delete a system. Remove its lockers first."""
    app.emit(CapacityService(app.community).delete_system(system_id))


@system.command(
    name="list",
    examples="""\
  lockerctl system list
  lockerctl --json system list""",
)
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List systems with their locker counts."""
    app.emit(CapacityService(app.community).list_systems())
