"""AppContext, the shared click context object for all commands.

Created once by the root group and passed to subcommands with
``@click.pass_obj``. It opens the store lazily and routes results to
stdout or stderr with the right exit code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from verifyhub.config.logging import configure_logging
from verifyhub.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from verifyhub.config.settings import VerifySettings
    from verifyhub.infrastructure.store import Store
    from verifyhub.services.result import ServiceResult


class AppContext:
    """Settings plus a lazily created :class:`Store`.

    ``--help`` and ``--version`` never touch the database because the
    store is only built on first access.
    """

    def __init__(self, settings: VerifySettings) -> None:
        self.settings = settings
        self._store: Store | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def store(self) -> Store:
        if self._store is None:
            from verifyhub.infrastructure.store import Store

            self._store = Store(self.settings)
        return self._store

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; failures go to stderr and exit with code 1.

        Warnings go to stderr so piped output stays clean. In JSON mode
        they are already part of the payload.
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
