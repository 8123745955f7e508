"""Click base classes for memoboot commands.

Each command may carry a list of example invocations.  ``--help`` stays
short; ``--examples`` prints them, prefixed with the program name the user
actually typed, and exits.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import click


class _ExamplesCommand(click.Command):
    """Command that owns an ``--examples`` flag when given examples."""

    def __init__(self, *args: Any, examples: Sequence[str] = (), **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = tuple(examples)
        if self.examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._show_examples,
                    help="Show usage examples.",
                )
            )

    def _show_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or ctx.resilient_parsing:
            return
        prog = ctx.find_root().info_name or "memoboot"
        click.echo(f"Examples for '{ctx.command_path}':\n")
        for line in self.examples:
            click.echo(f"  {prog} {line}".rstrip())
        ctx.exit(0)


class BootCommand(_ExamplesCommand):
    """Leaf command (``setup``, ``backends``)."""


class BootGroup(_ExamplesCommand, click.Group):
    """Root group; subcommands default to :class:`BootCommand`."""

    command_class = BootCommand
