"""Subcommand modules for writeguard.

Provides register_commands() which uses deferred imports to keep
``writeguard --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from writeguard.commands.types_cmd import types_cmd
    from writeguard.commands.validate import validate
    from writeguard.commands.write import insert, update

    cli.add_command(types_cmd)
    cli.add_command(validate)
    cli.add_command(insert)
    cli.add_command(update)
