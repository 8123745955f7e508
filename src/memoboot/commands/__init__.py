"""Subcommand modules for memoboot."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from memoboot.commands.backends import backends
    from memoboot.commands.setup_cmd import setup_cmd

    cli.add_command(setup_cmd)
    cli.add_command(backends)
