"""AppContext — shared Click context for all commands.

Created once by the root CLI group and handed to subcommands via
``@click.pass_obj``. The community is opened lazily so ``--help`` and
``--version`` never touch the database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from lockerctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from lockerctl.config.settings import LockerSettings
    from lockerctl.infrastructure.community import Community
    from lockerctl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: LockerSettings) -> None:
        self.settings = settings
        self._community: Community | None = None

        from lockerctl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from lockerctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def community(self) -> Community:
        """The community (opened on first access)."""
        if self._community is None:
            from lockerctl.infrastructure.community import Community

            self._community = Community(self.settings)
            if self.settings.plugins.enabled:
                self._community.init_plugins()
        return self._community

    def close(self) -> None:
        if self._community is not None:
            self._community.close()
            self._community = None

    def emit(self, result: ServiceResult) -> None:
        """Print a ServiceResult and set the exit status.

        * Success: stdout. Warnings go to stderr so piped output stays clean.
        * Failure: stderr, exit code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
