"""Click building blocks shared by every writeguard command.

* ``--examples``: commands and groups take an ``examples=`` string that is
  printed by an eager ``--examples`` flag, keeping ``--help`` short.
* ``JSON_OBJECT``: parameter type for the VALUES and KEY arguments.
"""

from __future__ import annotations

import json
from typing import Any

import click


def _show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    command = ctx.command
    click.echo(f"Examples for '{ctx.command_path}':\n")
    click.echo(getattr(command, "examples", ""))
    ctx.exit(0)


class _ExamplesMixin:
    """Adds an eager ``--examples`` option when ``examples`` text is given."""

    examples: str | None
    params: list[click.Parameter]

    def _attach_examples(self, examples: str | None) -> None:
        self.examples = examples
        if not examples:
            return
        self.params.append(
            click.Option(
                ["--examples"],
                is_flag=True,
                expose_value=False,
                is_eager=True,
                callback=_show_examples,
                help="Show usage examples.",
            )
        )


class WgCommand(_ExamplesMixin, click.Command):
    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._attach_examples(examples)


class WgGroup(_ExamplesMixin, click.Group):
    """Group whose subcommands default to :class:`WgCommand`."""

    command_class = WgCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._attach_examples(examples)


class JsonObject(click.ParamType):
    """A command-line argument holding a JSON object.

    ``null`` values inside the object are kept: they become explicit nulls
    in the write, which is different from leaving the property out.
    """

    name = "json"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        if isinstance(value, dict):
            return value
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as exc:
            self.fail(f"invalid JSON: {exc.msg}", param, ctx)
        if not isinstance(parsed, dict):
            self.fail("expected a JSON object", param, ctx)
        return parsed


JSON_OBJECT = JsonObject()
