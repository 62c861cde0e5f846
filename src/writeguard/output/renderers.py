"""Rich rendering of WriteService results.

Each op has its own renderer (see ``_OP_RENDERERS``); failures share one
error renderer that lists every validation message as a bullet. Anything
derived from user data is wrapped in :class:`~rich.text.Text` so regexes
and bracketed values are never read as console markup.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from writeguard.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from writeguard.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render *result* for a terminal; plain text when stdout is not a TTY."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """One line per result: ``valid``/``invalid``, type names, or ``OK: op``."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    if result.op == "validate":
        return "valid" if result.data.get("valid") else "invalid"
    if result.op == "list_types":
        return "\n".join(item["name"] for item in result.data.get("items", []))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="wg.ok")
    op = Text(f"  {result.op}", style="wg.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="wg.key")
    if isinstance(value, dict | list):
        v = Text(_json.dumps(value, separators=(",", ":"), default=str))
    elif key == "type":
        v = Text(str(value), style="wg.type")
    else:
        v = Text(str(value))
    console.print(k, v, sep="", end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including the telemetry span tree (verbose only)."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_span(console, v, indent=4)
        else:
            console.print(Text(f"    {k}: {v}"))


def _render_span(console: Console, span: dict[str, Any], indent: int) -> None:
    line = f"{' ' * indent}{span.get('name', '?')}  {span.get('duration_ms', 0.0):.2f}ms"
    notes = span.get("annotations") or {}
    if notes:
        line += "  " + " ".join(f"{k}={v}" for k, v in notes.items())
    console.print(Text(line), style="dim" if indent > 4 else None)
    for child in span.get("children", []):
        _render_span(console, child, indent + 2)


def _render_messages(console: Console, messages: list[str], style: str) -> None:
    for message in messages:
        console.print(Text("  - ", style=style), Text(message), sep="", end="")
        console.print()


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    label = Text("ERROR", style="wg.error")
    op = Text(f"  {result.op}", style="wg.op")
    code = Text(f"  {err.code}" if err else "")
    console.print(label, op, code, end="")
    console.print()

    if err is None:
        console.print("  Unknown error")
        return
    if result.errors:
        _render_messages(console, result.errors, "wg.error")
    else:
        console.print(Text(f"  {err.message}"))

    if verbose and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            if k != "errors":
                console.print(Text(f"    {k}: {v}"))


# ── Operation renderers ───────────────────────────────────────────────


def _render_write(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render insert/update results, validated or unchecked."""
    _status_line(console, result)
    for key in ("type", "operation", "validated", "rowcount", "key", "values"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


def _render_validate(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    data = result.data
    if data.get("valid"):
        console.print(Text("VALID", style="wg.ok"), Text(f"  {data['operation']} {data['type']}"))
    else:
        console.print(
            Text("INVALID", style="wg.error"),
            Text(f"  {data['operation']} {data['type']}"),
        )
        _render_messages(console, data.get("errors", []), "wg.error")
    if verbose:
        _field(console, "values", data.get("values", {}))
        _render_meta(console, result)


def _render_types(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    if not items:
        console.print("No types registered.")
        return
    for item in items:
        hooks = [name for name in ("pre_write", "post_validation") if item.get(name)]
        title = f"{item['name']} (table {item['table']})"
        if hooks:
            title += f"  hooks: {', '.join(hooks)}"
        table = Table(title=Text(title), title_justify="left", show_edge=False)
        table.add_column("Property", style="wg.property")
        table.add_column("Type")
        table.add_column("Null")
        table.add_column("Rules", style="wg.rule")
        for prop in item["properties"]:
            if not prop["persistent"] and not verbose:
                continue
            rules = ", ".join(
                r["description"] if len(r["operations"]) == 2
                else f"{r['description']} [{'/'.join(r['operations'])}]"
                for r in prop["rules"]
            )
            name = prop["name"] + ("*" if prop["name"] in item["key"] else "")
            table.add_row(Text(name), prop["type"], "yes" if prop["nullable"] else "no", Text(rules))
        console.print(table)
        console.print()


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Status line followed by every data key."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "insert": _render_write,
    "update": _render_write,
    "insert_unchecked": _render_write,
    "update_unchecked": _render_write,
    "validate": _render_validate,
    "list_types": _render_types,
}
