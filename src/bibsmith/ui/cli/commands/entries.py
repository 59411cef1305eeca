"""Commands reading and editing the entries of one library."""

from __future__ import annotations

import typer

from .._options import (
    CitationKeyArgument,
    EntryTypeOption,
    FieldOption,
    FromBibOption,
    JsonOption,
    KeyOption,
    LibraryArgument,
)
from ..presenter import build_entry_panel, print_entries, print_entries_json, print_entry_json
from ..state import emit_error, get_cli_state
from ..utils import build_entry, store_errors


app = typer.Typer(help="Read, add, update and remove library entries.", no_args_is_help=True)


@app.command("list")
def list_entries(library: LibraryArgument, as_json: JsonOption = False) -> None:
    """Show every entry of a library."""
    with store_errors():
        entries = get_cli_state().store().get_entries(library)
    if as_json:
        print_entries_json(entries)
    else:
        print_entries(entries)


@app.command("show")
def show_entry(
    library: LibraryArgument,
    key: CitationKeyArgument,
    as_json: JsonOption = False,
) -> None:
    """Show the entry stored under a citation key."""
    state = get_cli_state()
    with store_errors():
        entry = state.store().get_entry(library, key)
    if entry is None:
        emit_error(f"not found: No entry '{key}' in library '{library}'.")
        raise typer.Exit(code=1)
    if as_json:
        print_entry_json(entry)
    else:
        state.console.print(build_entry_panel(entry))


@app.command("add")
def add_entry(
    library: LibraryArgument,
    key: KeyOption = None,
    entry_type: EntryTypeOption = None,
    fields: FieldOption = None,
    from_bib: FromBibOption = None,
) -> None:
    """Add an entry; its citation key must not exist in the library yet."""
    state = get_cli_state()
    with store_errors():
        entry = build_entry(key=key, entry_type=entry_type, fields=fields, from_bib=from_bib)
        stored = state.store().insert_entry(library, entry)
    state.console.print(f"Added '{stored.key}' to '{library}'")


@app.command("update")
def update_entry(
    library: LibraryArgument,
    key: CitationKeyArgument,
    new_key: KeyOption = None,
    entry_type: EntryTypeOption = None,
    fields: FieldOption = None,
    from_bib: FromBibOption = None,
) -> None:
    """Replace the entry stored under KEY with the given contents."""
    state = get_cli_state()
    with store_errors():
        entry = build_entry(key=new_key, entry_type=entry_type, fields=fields, from_bib=from_bib)
        if not entry.has_key:
            entry = entry.with_key(key)
        state.store().update_entry(library, key, entry)
    state.console.print(f"Updated '{key}' in '{library}'")


@app.command("remove")
def remove_entry(library: LibraryArgument, key: CitationKeyArgument) -> None:
    """Remove the entry stored under a citation key."""
    state = get_cli_state()
    with store_errors():
        deleted = state.store().delete_entry(library, key)
    if not deleted:
        emit_error(f"not found: No entry '{key}' in library '{library}'.")
        raise typer.Exit(code=1)
    state.console.print(f"Removed '{key}' from '{library}'")


__all__ = ["app"]
