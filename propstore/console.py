"""Console reporting for recording runs.

Usage:
    from propstore.console import console

    console.info("Allocated block storage", detail="shape=(3, 1001) dtype=float64")
    console.warn("Observable returned a Python float next to numpy scalars")
    console.success("Recorded", detail="1001 samples")

Library calls only report when `StorageConfig.verbose` is set.
"""

from __future__ import annotations

from typing import Optional

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.text import Text


class Console:
    """Thin rich wrapper; writes to stderr so recorded runs keep stdout clean."""

    __slots__ = ("_console",)

    def __init__(self, rich_console: RichConsole | None = None) -> None:
        self._console = rich_console if rich_console is not None else RichConsole(stderr=True)

    def _emit(self, marker: str, style: str, message: str, detail: Optional[str]) -> None:
        self._console.print(
            f"[{style}]{marker}[/{style}] {message}" + (f" [dim]{detail}[/dim]" if detail else "")
        )

    def info(self, message: str, *, detail: Optional[str] = None) -> None:
        self._emit("•", "blue", message, detail)

    def warn(self, message: str, *, detail: Optional[str] = None) -> None:
        self._emit("⚠", "yellow", message, detail)

    def error(self, message: str, *, detail: Optional[str] = None) -> None:
        self._emit("✗", "bold red", message, detail)

    def success(self, message: str, *, detail: Optional[str] = None, title: Optional[str] = None) -> None:
        """Green success line, or a panel when `title` is given."""
        if title is None:
            self._emit("✓", "bold green", message, detail)
            return
        text = Text(message, style="bold green")
        if detail:
            text.append(f"\n{detail}", style="dim")
        self._console.print(Panel(text, title=f"[cyan]{title}[/cyan]", border_style="green"))

    def header(self, title: str, **fields: str) -> None:
        """Panel of key/value fields (used when a recorder starts)."""
        lines = [f"[bold]{k}:[/bold] {v}" for k, v in fields.items()]
        self._console.print(Panel("\n".join(lines), title=f"[cyan]{title}[/cyan]", border_style="blue"))


console = Console()
