"""Subcommand modules for verifyhub.

:func:`register_commands` imports each module on registration so the
root module stays small.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the command groups and standalone commands on *cli*."""
    # --- Groups ---
    from verifyhub.commands.discount import discount
    from verifyhub.commands.location import location
    from verifyhub.commands.price import price
    from verifyhub.commands.request import request

    cli.add_command(request)
    cli.add_command(price)
    cli.add_command(location)
    cli.add_command(discount)

    # --- Standalone commands ---
    from verifyhub.commands.check import check

    cli.add_command(check)
