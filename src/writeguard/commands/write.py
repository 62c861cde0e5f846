"""Commands: validated (or explicitly unchecked) inserts and updates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from writeguard.commands._base import JSON_OBJECT, WgCommand

if TYPE_CHECKING:
    from writeguard.commands._context import AppContext

_UNCHECKED_HELP = "Bypass hooks and rules and write the values as given."


@click.command(
    cls=WgCommand,
    examples="""\
  writeguard insert orders '{"state": "started", "email": "a@b.c"}'
  writeguard --json insert orders '{"state": "accepted", "email": "x@y.z"}'
  writeguard insert orders '{"state": "legacy"}' --unchecked""",
)
@click.argument("type_name")
@click.argument("values", type=JSON_OBJECT)
@click.option("--unchecked", is_flag=True, help=_UNCHECKED_HELP)
@click.pass_obj
def insert(app: AppContext, type_name: str, values: dict[str, Any], unchecked: bool) -> None:
    """Insert a row of TYPE_NAME built from the VALUES JSON object."""
    from writeguard.services.write import WriteService

    service = WriteService(app.store)
    if unchecked:
        app.emit(service.insert_unchecked(type_name, values))
    else:
        app.emit(service.insert(type_name, values))


@click.command(
    cls=WgCommand,
    examples="""\
  writeguard update orders '{"id": 1}' '{"state": "delivered"}'
  writeguard update orders '{"id": 1}' '{"email": null}'
  writeguard update orders '{"id": 1}' '{"canOnlyBeSetOnce": 2}' --unchecked""",
)
@click.argument("type_name")
@click.argument("key", type=JSON_OBJECT)
@click.argument("values", type=JSON_OBJECT)
@click.option("--unchecked", is_flag=True, help=_UNCHECKED_HELP)
@click.pass_obj
def update(
    app: AppContext,
    type_name: str,
    key: dict[str, Any],
    values: dict[str, Any],
    unchecked: bool,
) -> None:
    """Update the TYPE_NAME row at KEY with the VALUES JSON object.

    Only the properties present in VALUES are touched.
    """
    from writeguard.services.write import WriteService

    service = WriteService(app.store)
    if unchecked:
        app.emit(service.update_unchecked(type_name, key, values))
    else:
        app.emit(service.update(type_name, key, values))
