"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from memoboot.output.console import create_console, get_output, style_for_backend

if TYPE_CHECKING:
    from rich.console import Console

    from memoboot.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="boot.ok")
    op = Text(f"  {result.op}", style="boot.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}:", style="boot.key")
    if key == "database_url":
        v = Text(str(value), style="boot.url")
    elif key == "backend":
        v = Text(str(value), style=style_for_backend(str(value)))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _steps_table(steps: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Step", style="boot.step", no_wrap=True)
    table.add_column("Status")
    if verbose:
        table.add_column("Time", style="dim", justify="right")
    table.add_column("Detail")

    for step in steps:
        if step.get("ok"):
            status = Text("ok", style="boot.ok")
        else:
            status = Text("failed", style="boot.error")
        row: list[Any] = [str(step.get("name", "")), status]
        if verbose:
            row.append(f"{float(step.get('duration_ms', 0.0)):.0f}ms")
        row.append(Text(str(step.get("detail", ""))))
        table.add_row(*row)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="boot.error")
    op = Text(f"  {result.op}", style="boot.op")
    sep = Text(" — ")
    console.print(label, op, sep, Text(msg))

    steps = result.data.get("steps")
    if steps:
        console.print(_steps_table(steps, verbose=verbose))

    if err and err.detail:
        stderr = err.detail.get("stderr")
        if stderr:
            console.print(Text("  output:", style="dim"))
            for line in str(stderr).splitlines():
                console.print(Text(f"    {line}"))
        if verbose:
            console.print(Text("  detail:", style="dim"))
            for k, v in err.detail.items():
                if k != "stderr":
                    console.print(Text(f"    {k}: {v}"))


# ── Operation renderers ───────────────────────────────────────────────


def _render_setup(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("backend", "database_url", "phase"):
        if key in result.data:
            _field(console, key, result.data[key])
    steps = result.data.get("steps")
    if steps:
        console.print()
        console.print(_steps_table(steps, verbose=verbose))


def _render_backends(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Key", no_wrap=True)
    table.add_column("Backend")
    table.add_column("Description")
    table.add_column("DATABASE_URL", style="boot.url")
    if verbose:
        table.add_column("Container")

    for item in result.data.get("items", []):
        kind = str(item.get("backend", ""))
        row: list[Any] = [
            str(item.get("key", "")),
            Text(kind, style=style_for_backend(kind)),
            str(item.get("label", "")),
            str(item.get("database_url", "")),
        ]
        if verbose:
            row.append("yes" if item.get("container") else "no")
        table.add_row(*row)
    console.print(table)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


_OP_RENDERERS: dict[str, Any] = {
    "setup": _render_setup,
    "backends": _render_backends,
}
