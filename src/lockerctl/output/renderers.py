"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). Renderers are
dispatched by ``result.op`` in :func:`render_result`; unknown ops fall
through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from lockerctl.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from lockerctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text when Rich detects no terminal, which is the case
    inside Click's CliRunner and piped output.
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

    data = result.data
    if result.op == "store":
        return f"{data['custody_id']} {data['locker_id']} {data['otp']}"

    items = data.get("items")
    if isinstance(items, list):
        return "\n".join(_extract_id(item) for item in items if _extract_id(item))
    locker_ids = data.get("locker_ids")
    if isinstance(locker_ids, list):
        return "\n".join(str(locker_id) for locker_id in locker_ids)

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_id(item: Any) -> str:
    if isinstance(item, dict) and item.get("id") is not None:
        return str(item["id"])
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="locker.ok")
    op = Text(f"  {result.op}", style="locker.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="locker.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="locker.id")
    elif key == "otp":
        v = Text(str(value), style="locker.otp")
    elif key == "status":
        v = Text(str(value), style=style_for_status(str(value)))
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including the telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _styled_status(status: Any) -> Text:
    value = str(status or "")
    return Text(value, style=style_for_status(value))


def _counts_table(counts: dict[str, Any]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Size")
    table.add_column("Total", justify="right")
    table.add_column("Available", style="locker.status.available", justify="right")
    by_size = counts.get("available_by_size", {})
    for size in ("small", "medium", "large"):
        table.add_row(size, str(counts.get(size, 0)), str(by_size.get(size, 0)))
    table.add_row(
        Text("all", style="bold"),
        str(counts.get("total", 0)),
        str(counts.get("available", 0)),
    )
    return table


def _package_table(items: list[dict[str, Any]], *, closed: bool, verbose: bool) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="locker.id", no_wrap=True)
    table.add_column("System", justify="right")
    table.add_column("Locker", justify="right")
    table.add_column("Size")
    table.add_column("Recipient", style="locker.title")
    table.add_column("Placed")
    if closed:
        table.add_column("Retrieved")
        table.add_column("By")
    if verbose:
        table.add_column("Product", style="dim")
        table.add_column("Tracking", style="dim")

    for item in items:
        row: list[Any] = [
            str(item.get("id", "")),
            str(item.get("system_id", "")),
            str(item.get("locker_id", "")),
            str(item.get("size_class", "")),
            str(item.get("recipient_name", "")),
            str(item.get("placed_at", "")),
        ]
        if closed:
            row.append(str(item.get("retrieved_at", "")))
            row.append(str(item.get("retrieved_by", "")))
        if verbose:
            row.append(str(item.get("product_ref", "")))
            row.append(str(item.get("tracking_number") or ""))
        table.add_row(*row)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="locker.error")
    op = Text(f"  {result.op}", style="locker.op")
    console.print(label, op, Text(" — "), msg)

    if err:
        console.print(Text(f"  code: {err.code}", style="dim"))
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── System renderers ──────────────────────────────────────────────────


def _render_system(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create/update/delete system results."""
    _status_line(console, result)
    for key in ("id", "name", "location", "community_id"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


def _render_system_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="locker.id", no_wrap=True)
    table.add_column("Name", style="locker.title")
    table.add_column("Location")
    table.add_column("Lockers", justify="right")
    table.add_column("Available", style="locker.status.available", justify="right")
    for item in items:
        counts = item.get("counts", {})
        table.add_row(
            str(item.get("id", "")),
            str(item.get("name", "")),
            str(item.get("location", "")),
            str(counts.get("total", 0)),
            str(counts.get("available", 0)),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} systems")


# ── Locker renderers ──────────────────────────────────────────────────


def _render_capacity_change(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    """Render add_lockers / remove_lockers results."""
    _status_line(console, result)
    d = result.data
    _field(console, "system_id", d.get("system_id"))
    ids = d.get("locker_ids", [])
    _field(console, "lockers", len(ids))
    if ids:
        _field(console, "locker_ids", ", ".join(str(i) for i in ids))
    counts = d.get("counts")
    if counts:
        console.print()
        console.print(_counts_table(counts))
    if verbose:
        _render_meta(console, result)


def _render_locker(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("id", "system_id", "size_class", "status"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


def _render_counts(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    if "community_id" in d:
        title = f"Community {d['community_id']} — {d.get('systems', 0)} systems"
    else:
        title = f"System {d.get('system_id', '?')}"
    console.print(Text(title, style="locker.title"))
    console.print(_counts_table(d))
    console.print(
        f"\n{d.get('occupied', 0)} occupied, {d.get('available', 0)} available "
        f"of {d.get('total', 0)} lockers"
    )
    if verbose:
        _render_meta(console, result)


def _render_locker_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="locker.id", no_wrap=True)
    table.add_column("Size")
    table.add_column("Status")
    table.add_column("Row", justify="right")
    table.add_column("Col", justify="right")
    for item in items:
        position = item.get("position") or {}
        table.add_row(
            str(item.get("id", "")),
            str(item.get("size_class", "")),
            _styled_status(item.get("status")),
            str(position.get("row", "")),
            str(position.get("column", "")),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} lockers")


# ── Custody renderers ─────────────────────────────────────────────────


def _render_receipt(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render the intake receipt. The OTP is shown once, here."""
    d = result.data
    lines = [
        f"custody: [locker.id]{d.get('custody_id', '?')}[/locker.id]",
        f"system:  {d.get('system_id', '?')}",
        f"locker:  [locker.id]{d.get('locker_id', '?')}[/locker.id] ({d.get('size_class', '')})",
        f"code:    [locker.otp]{d.get('otp', '')}[/locker.otp]",
    ]
    panel = Panel("\n".join(lines), title="Package stored", border_style="green", expand=False)
    console.print(panel)
    if verbose:
        _render_meta(console, result)


def _render_package(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a single custody record (lookup or retrieval)."""
    d = result.data
    lines: list[str] = []
    keys = (
        "status",
        "system_id",
        "locker_id",
        "size_class",
        "recipient_name",
        "recipient_contact",
        "product_ref",
        "tracking_number",
        "courier",
        "comments",
        "placed_by",
        "placed_at",
        "retrieved_by",
        "retrieved_at",
    )
    for key in keys:
        val = d.get(key)
        if val is not None and val != "":
            lines.append(f"{key}: {val}")

    status = str(d.get("status", ""))
    title = f"{d.get('id', '?')} — {d.get('recipient_name', '')}"
    border = style_for_status(status) or "dim"
    console.print(Panel("\n".join(lines), title=title, border_style=border, expand=False))
    if verbose:
        _render_meta(console, result)


def _render_package_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    items = result.data.get("items", [])
    closed = result.op == "history"
    console.print(_package_table(items, closed=closed, verbose=verbose))
    noun = "retrievals" if closed else "packages waiting"
    console.print(f"\n{result.data.get('count', len(items))} {noun}")


# ── Generic ───────────────────────────────────────────────────────────


def _render_init(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("community_id", "name", "config_path", "state_dir"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Systems
    "create_system": _render_system,
    "update_system": _render_system,
    "delete_system": _render_system,
    "list_systems": _render_system_table,
    # Lockers
    "add_lockers": _render_capacity_change,
    "remove_lockers": _render_capacity_change,
    "remove_single_locker": _render_locker,
    "counts": _render_counts,
    "summary": _render_counts,
    "list_lockers": _render_locker_table,
    # Custody
    "store": _render_receipt,
    "request_retrieval": _render_package,
    "verify_and_retrieve": _render_package,
    "list_open": _render_package_table,
    "history": _render_package_table,
    # Init
    "init_community": _render_init,
}
