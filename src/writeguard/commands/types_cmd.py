"""Command: list registered types with their properties and rules."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from writeguard.commands._base import WgCommand

if TYPE_CHECKING:
    from writeguard.commands._context import AppContext


@click.command(
    "types",
    cls=WgCommand,
    examples="""\
  writeguard types
  writeguard -v types        # include non-persistent properties
  writeguard --json types""",
)
@click.pass_obj
def types_cmd(app: AppContext) -> None:
    """List registered types, their properties and attached rules."""
    from writeguard.services.write import WriteService

    app.emit(WriteService(app.store).list_types())
