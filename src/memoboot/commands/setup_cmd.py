"""Command: database setup run (named setup_cmd to keep setup.py free for packaging tools)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from memoboot.commands._base import BootCommand

if TYPE_CHECKING:
    from memoboot.commands._context import AppContext

_SETUP_EXAMPLES = (
    "setup",
    "setup --backend 2",
    "--no-interact setup --backend container",
    "--json setup --backend sqlite",
)


@click.command("setup", cls=BootCommand, examples=_SETUP_EXAMPLES)
@click.option(
    "-b",
    "--backend",
    "choice",
    default=None,
    help="Menu choice (1, 2, 3) or name (container, sqlite, local); skips the prompt.",
)
@click.pass_obj
def setup_cmd(app: AppContext, choice: str | None) -> None:
    """Set up the database and run the application once."""
    # Menu and prompt go to stderr in JSON mode so stdout stays parseable.
    to_stderr = app.settings.json_output

    def prompt(menu: str) -> str:
        click.echo(menu, err=to_stderr)
        # An empty line or closed input is answered like any other invalid choice.
        try:
            answer = click.prompt(
                "Enter choice", default="", show_default=False, err=to_stderr
            )
        except click.Abort:
            click.echo(err=to_stderr)
            return ""
        return str(answer)

    boot = app.bootstrapper()
    app.emit(boot.run(choice, prompt=prompt if app.interactive else None))
