"""Command: list the backend menu."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from memoboot.commands._base import BootCommand

if TYPE_CHECKING:
    from memoboot.commands._context import AppContext


@click.command(
    cls=BootCommand,
    examples=("backends", "--json backends"),
)
@click.pass_obj
def backends(app: AppContext) -> None:
    """List the database backends and the DATABASE_URL each produces."""
    app.emit(app.bootstrapper().list_backends())
