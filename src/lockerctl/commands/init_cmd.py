"""Command: site initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from lockerctl.commands._base import LockerCommand

if TYPE_CHECKING:
    from lockerctl.commands._context import AppContext


@click.command(
    "init",
    cls=LockerCommand,
    examples="""\
  lockerctl init /srv/lockers --id maple-court --name "Maple Court"
  lockerctl init""",
)
@click.argument("path", required=False, default=".")
@click.option("--id", "community_id", default="community-1", help="Community identifier.")
@click.option("--name", default=None, help="Community name (default: directory name).")
@click.pass_obj
def init_cmd(app: AppContext, path: str, community_id: str, name: str | None) -> None:
    """Create lockerctl.toml and an empty database."""
    site_root = Path(path).resolve()
    if name is None:
        name = site_root.name or "my-community"

    from lockerctl.services.init import InitService

    app.emit(
        InitService.init_community(
            site_root,
            community_id=community_id,
            name=name,
            storage=app.settings.storage,
        )
    )
