"""Command: dry-run validation of a write (never touches the database)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from writeguard.commands._base import JSON_OBJECT, WgCommand

if TYPE_CHECKING:
    from writeguard.commands._context import AppContext


@click.command(
    cls=WgCommand,
    examples="""\
  writeguard validate orders '{"state": "started", "email": "a@b.c"}'
  writeguard validate orders '{"canOnlyBeSetOnce": 1}' --op update
  writeguard --json validate orders '{"state": null}'""",
)
@click.argument("type_name")
@click.argument("values", type=JSON_OBJECT)
@click.option(
    "--op",
    "operation",
    type=click.Choice(["insert", "update"]),
    default="insert",
    show_default=True,
    help="Operation to validate for.",
)
@click.pass_obj
def validate(app: AppContext, type_name: str, values: dict[str, Any], operation: str) -> None:
    """Run hooks and rules for VALUES against TYPE_NAME and report the verdict.

    Exits 1 when the write would be rejected.
    """
    from writeguard.services.write import WriteService

    result = WriteService(app.store).validate(type_name, operation, values)
    app.emit(result)
    if not result.data.get("valid", False):
        raise SystemExit(1)
