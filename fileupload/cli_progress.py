"""Console rendering helpers for the fileupload CLI."""
from __future__ import annotations

import time
from typing import Any, Dict, Iterable, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .models import FileUploadRecord, UploadStatus


console = Console()

_PALETTE = {
    UploadStatus.INITIAL: "white",
    UploadStatus.LOADING: "cyan",
    UploadStatus.SUCCESS: "green",
    UploadStatus.ERROR: "red",
}


def _human_size(value: int) -> str:
    size = float(max(value, 0))
    units = ["B", "KB", "MB", "GB", "TB"]
    unit_idx = 0
    while size >= 1024.0 and unit_idx < len(units) - 1:
        size /= 1024.0
        unit_idx += 1
    if unit_idx == 0:
        return f"{int(size)} {units[unit_idx]}"
    return f"{size:.2f} {units[unit_idx]}"


def render_configuration_summary(config: Dict[str, Any], out: Optional[Console] = None) -> None:
    """Render startup configuration summary."""
    out = out or console
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]fileupload[/bold green]",
        subtitle="[dim]upload CLI[/dim]",
        border_style="blue",
    )
    out.print(panel)


class BatchProgressDisplay:
    """
    Prints one timeline line per record status change.

    Subscribe ``on_change`` to the store's change event.
    """

    def __init__(self, out: Optional[Console] = None):
        self._out = out or console
        self._seen: Dict[str, tuple] = {}

    def on_change(self, uploader_key: str, files: Dict[str, FileUploadRecord]) -> None:
        for key, record in files.items():
            state = (record.status, record.dimensions)
            if self._seen.get(key) == state:
                continue
            self._seen[key] = state
            self._emit_timeline(record)

    def _emit_timeline(self, record: FileUploadRecord) -> None:
        stamp = time.strftime("%H:%M:%S")
        color = _PALETTE[record.status]
        detail = ""
        if record.status == UploadStatus.SUCCESS:
            detail = f" {escape(record.remote_url or '')}"
            if record.dimensions:
                detail += f" ({record.dimensions[0]}x{record.dimensions[1]})"
        elif record.status == UploadStatus.ERROR:
            detail = f" cause={escape(record.error_message or '')}"
        self._out.print(
            f"[dim]{stamp}[/dim] [{color}]{record.status.value:<7}[/{color}] "
            f"{escape(record.file.name)} {_human_size(record.file.size)}{detail}",
            highlight=False,
        )


def render_results(records: Iterable[FileUploadRecord], out: Optional[Console] = None) -> None:
    """Render the final state of a batch."""
    out = out or console
    table = Table(title="Uploads", show_lines=False)
    table.add_column("File", style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Status")
    table.add_column("Result", overflow="fold")

    for record in records:
        color = _PALETTE[record.status]
        if record.status == UploadStatus.SUCCESS:
            result = escape(record.remote_url or "")
            if record.dimensions:
                result += f" [dim]{record.dimensions[0]}x{record.dimensions[1]}[/dim]"
        else:
            result = escape(record.error_message or "")
        table.add_row(
            escape(record.file.name),
            _human_size(record.file.size),
            f"[{color}]{record.status.value}[/{color}]",
            result,
        )
    out.print(table)
