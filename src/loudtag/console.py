"""Shared Rich console for the loudtag CLI.

Holds the global console instance and the helpers commands use to report
results.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

# Global console instance (initialized in CLI)
_console: Console | None = None


def get_console() -> Console:
    """Get the global Rich console instance.

    Raises:
        RuntimeError: If console not initialized (should only happen in tests)
    """
    if _console is None:
        raise RuntimeError("Console not initialized. Call set_console() first.")
    return _console


def set_console(console: Console) -> None:
    global _console
    _console = console


def print_error(message: str) -> None:
    get_console().print(f"[red]Error: {escape(message)}[/red]")


def print_success(message: str) -> None:
    get_console().print(f"[green]{escape(message)}[/green]")


def print_tags(file_path: Path, tags: Mapping[str, list[str]]) -> None:
    """Print the loudness tags of one file as a table."""
    if not tags:
        get_console().print(f"{file_path}: [dim]no loudness tags[/dim]")
        return

    table = Table(title=str(file_path), title_justify="left")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, values in tags.items():
        table.add_row(key, ", ".join(values))
    get_console().print(table)
