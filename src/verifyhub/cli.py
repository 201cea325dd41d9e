"""Root CLI group for verifyhub with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from verifyhub import __version__
from verifyhub.commands import register_commands
from verifyhub.commands._context import AppContext
from verifyhub.config.settings import VerifySettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="verifyhub")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding .verifyhub/ (default: config dir or CWD).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    data_dir: Path | None,
) -> None:
    """verifyhub: verification requests, pricing, and location costs."""
    ctx.ensure_object(dict)
    settings = VerifySettings.from_cli(
        config_path=config_path,
        data_dir=data_dir,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
