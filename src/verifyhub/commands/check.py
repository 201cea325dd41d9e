"""Command: report requests that need operator attention."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from verifyhub.commands._base import VerifyCommand

if TYPE_CHECKING:
    from verifyhub.commands._context import AppContext


@click.command(
    cls=VerifyCommand,
    examples="""\
  verifyhub check
  verifyhub check --errors-only
  verifyhub check --min-severity error""",
)
@click.option(
    "--min-severity",
    type=click.Choice(["warning", "error"]),
    default="warning",
    help="Hide issues below this severity.",
)
@click.option("--errors-only", is_flag=True, help="Shortcut for --min-severity error.")
@click.pass_obj
def check(app: AppContext, min_severity: str, errors_only: bool) -> None:
    """Report unreconciled payments and overdue requests."""
    from verifyhub.services.check import CheckService

    threshold = "error" if errors_only else min_severity
    app.emit(CheckService(app.store).check(min_severity=threshold))
