"""Subcommand modules for lockerctl.

register_commands() imports lazily so ``lockerctl --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the command groups and standalone commands on the root group."""
    # --- Groups ---
    from lockerctl.commands.lockers import lockers
    from lockerctl.commands.system import system

    cli.add_command(system)
    cli.add_command(lockers)

    # --- Standalone commands ---
    from lockerctl.commands.custody import lookup, packages, retrieve, store
    from lockerctl.commands.history import history
    from lockerctl.commands.init_cmd import init_cmd

    cli.add_command(init_cmd)
    cli.add_command(store)
    cli.add_command(lookup)
    cli.add_command(retrieve)
    cli.add_command(packages)
    cli.add_command(history)
