"""Rich renderers for libraries, entries and merged catalogs."""

from __future__ import annotations

from collections.abc import Sequence
import json
from typing import TYPE_CHECKING

import typer

from bibsmith.core import Catalog, Entry

from .state import get_cli_state


if TYPE_CHECKING:
    from rich.panel import Panel


_HEADLINE_FIELDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Title", ("title",)),
    ("Authors", ("author", "editor")),
    ("Year", ("year", "date")),
    ("Journal", ("journal", "booktitle", "publisher")),
)


def build_entry_panel(entry: Entry) -> Panel:
    """Create a Rich panel that visualises a single bibliography entry."""
    from rich import box
    from rich.panel import Panel
    from rich.table import Table

    grid = Table.grid(padding=(0, 1))
    grid.add_column(style="bold green", no_wrap=True)
    grid.add_column()

    shown: set[str] = set()
    for label, candidates in _HEADLINE_FIELDS:
        for candidate in candidates:
            value = entry.get(candidate)
            if value and value.strip():
                grid.add_row(label, value.strip())
                shown.update(name for name in entry.fields if name.lower() == candidate)
                break

    for name, value in sorted(entry.fields.items()):
        if name in shown or not value.strip():
            continue
        grid.add_row(name.title(), value)

    key = entry.key or "(no key)"
    return Panel(grid, title=f"{key} ({entry.entry_type})", box=box.SIMPLE)


def print_entries(entries: Sequence[Entry]) -> None:
    """Render entries as panels followed by a count."""
    console = get_cli_state().console
    if not entries:
        console.print("[dim]No entries found.[/]")
        return
    for entry in entries:
        console.print(build_entry_panel(entry))
    console.print(f"{len(entries)} entries")


def print_entries_json(entries: Sequence[Entry]) -> None:
    typer.echo(json.dumps([entry.to_dict() for entry in entries], indent=2, ensure_ascii=False))


def print_entry_json(entry: Entry) -> None:
    typer.echo(json.dumps(entry.to_dict(), indent=2, ensure_ascii=False))


def print_library_table(names: Sequence[str]) -> None:
    """Print a table listing the library files of the working directory."""
    from rich import box
    from rich.table import Table

    state = get_cli_state()
    console = state.console
    table = Table(
        title="Libraries",
        box=box.SQUARE,
        show_edge=True,
        header_style="bold cyan",
    )
    table.add_column("Library", style="magenta")
    table.add_column("File")
    if not names:
        table.add_row("-", "No libraries found")
    else:
        resolver = state.store().resolver
        for name in names:
            table.add_row(resolver.library_name(name), name)
    console.print(table)


def print_catalog_overview(catalog: Catalog, entries: Sequence[Entry]) -> None:
    """Render merged entries plus per-library statistics and load warnings."""
    from rich import box
    from rich.table import Table
    from rich.text import Text

    console = get_cli_state().console

    stats = catalog.library_stats()
    if stats:
        stats_table = Table(
            title="Library Files",
            box=box.SQUARE,
            show_edge=True,
            header_style="bold cyan",
        )
        stats_table.add_column("Library", overflow="fold")
        stats_table.add_column("Entries", justify="right")
        for name, count in stats:
            stats_table.add_row(name, "failed" if count is None else str(count))
        stats_table.add_row(
            Text("Total", style="bold"),
            Text(str(sum(count or 0 for _, count in stats))),
        )
        console.print(stats_table)

    if catalog.issues:
        issue_table = Table(
            title="Warnings",
            box=box.SQUARE,
            header_style="bold cyan",
            show_edge=True,
        )
        issue_table.add_column("Library", style="yellow", no_wrap=True)
        issue_table.add_column("Message", style="yellow")
        for issue in catalog.issues:
            issue_table.add_row(issue.library, issue.message)
        console.print(issue_table)

    print_entries(entries)


__all__ = [
    "build_entry_panel",
    "print_catalog_overview",
    "print_entries",
    "print_entries_json",
    "print_entry_json",
    "print_library_table",
]
