"""Root CLI group for memoboot with global flags and command registration."""

from __future__ import annotations

import click

from memoboot import __version__
from memoboot.commands import register_commands
from memoboot.commands._base import BootGroup
from memoboot.commands._context import AppContext
from memoboot.config.settings import BootSettings


@click.group(
    "memoboot",
    cls=BootGroup,
    invoke_without_command=True,
    examples=("", "-v setup --backend 1", "backends"),
)
@click.version_option(version=__version__, prog_name="memoboot")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("--no-interact", is_flag=True, help="Non-interactive mode (no prompts).")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    no_interact: bool,
    config_path: str | None,
) -> None:
    """Set up the Smart Memo database and smoke-test the API.

    Run without a subcommand to get the interactive backend menu.
    """
    settings = BootSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        no_interact=no_interact,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        from memoboot.commands.setup_cmd import setup_cmd

        ctx.invoke(setup_cmd)


register_commands(cli)
