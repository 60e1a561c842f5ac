"""Terminal output for chunkup.

Results (upload summaries, chunk plans, config) go to stdout as JSON or Rich
tables. Status lines and the transfer progress bar go to stderr so that
``-o json`` output can be piped.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

# Fields rendered as human-readable sizes in table output.
BYTE_FIELDS = frozenset({"chunk_size", "size", "length", "object_size"})

_UNITS = ("B", "KiB", "MiB", "GiB", "TiB")
_NUMERIC_COLUMNS = BYTE_FIELDS | {"index", "start", "end", "attempts"}


class OutputFormat(Enum):
    """Output format options."""

    JSON = "json"
    TABLE = "table"

    @classmethod
    def from_string(cls, value: str) -> OutputFormat:
        return cls(value.lower())


def format_bytes(size: int) -> str:
    """Render a byte count with a binary unit, e.g. ``5.0 MiB``."""
    value = float(size)
    for unit in _UNITS:
        if value < 1024 or unit == _UNITS[-1]:
            break
        value /= 1024
    if unit == "B":
        return f"{int(value)} B"
    return f"{value:.1f} {unit}"


def _render(key: str, value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "yes" if value else "no"
    if key in BYTE_FIELDS and isinstance(value, int):
        return format_bytes(value)
    if isinstance(value, (Mapping, list)):
        return json.dumps(value, default=str)
    return str(value)


def _label(key: str) -> str:
    return key.replace("_", " ").title()


# =============================================================================
# Structured Output
# =============================================================================


def print_table(
    rows: Sequence[Mapping[str, Any]],
    columns: Sequence[str],
    *,
    title: str | None = None,
) -> None:
    """Print rows (e.g. a chunk plan) as a Rich table."""
    table = Table(title=title, show_header=True, header_style="bold")
    for column in columns:
        justify = "right" if column in _NUMERIC_COLUMNS else "left"
        table.add_column(_label(column), justify=justify)

    for row in rows:
        table.add_row(*(_render(column, row.get(column)) for column in columns))

    console.print(table)


def print_key_value(data: Mapping[str, Any], *, title: str | None = None) -> None:
    """Print a flat mapping as aligned ``Label  value`` lines.

    Byte-sized fields are humanized; nested values are shown as compact JSON.
    """
    if title:
        console.print(f"[bold]{title}[/bold]")
    if not data:
        return

    width = max(len(_label(key)) for key in data)
    for key, value in data.items():
        console.print(f"  {_label(key):<{width}}  {_render(key, value)}", highlight=False)


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def print_output(
    data: Any,
    *,
    format: OutputFormat = OutputFormat.TABLE,
    columns: Sequence[str] | None = None,
    title: str | None = None,
) -> None:
    """Print ``data`` as JSON, or as a table when ``columns`` is given.

    A mapping without ``columns`` is printed as key/value lines.
    """
    if format == OutputFormat.JSON:
        print_json(data)
    elif columns is not None:
        rows = [data] if isinstance(data, Mapping) else list(data)
        print_table(rows, columns, title=title)
    elif isinstance(data, Mapping):
        print_key_value(data, title=title)
    else:
        print_json(data)


# =============================================================================
# Status Messages
# =============================================================================


def print_error(message: str) -> None:
    err_console.print(f"[red]Error:[/red] {message}", highlight=False)


def print_warning(message: str) -> None:
    err_console.print(f"[yellow]Warning:[/yellow] {message}", highlight=False)


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}", highlight=False)


# =============================================================================
# Transfer Progress
# =============================================================================


def create_progress() -> Progress:
    """Create a byte-based progress bar for one upload.

    Tasks are expected to use the object size as ``total`` so the transfer
    columns show bytes sent and throughput.
    """
    return Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        DownloadColumn(binary_units=True),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        console=err_console,
    )
