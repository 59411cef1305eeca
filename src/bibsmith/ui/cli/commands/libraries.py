"""Commands managing the library files of the working directory."""

from __future__ import annotations

import typer

from .._options import LibraryArgument
from ..presenter import print_library_table
from ..state import emit_error, get_cli_state
from ..utils import store_errors


app = typer.Typer(help="List, create and delete libraries.", no_args_is_help=True)


@app.command("list")
def list_libraries() -> None:
    """List the libraries found in the working directory."""
    with store_errors():
        names = get_cli_state().store().list_libraries()
    print_library_table(names)


@app.command("create")
def create_library(library: LibraryArgument) -> None:
    """Create a new, empty library."""
    state = get_cli_state()
    with store_errors():
        store = state.store()
        store.create_library(library)
        path = store.path_for(library)
    state.console.print(f"Created {path}")


@app.command("delete")
def delete_library(library: LibraryArgument) -> None:
    """Delete a library file."""
    state = get_cli_state()
    with store_errors():
        deleted = state.store().delete_library(library)
    if not deleted:
        emit_error(f"not found: Library '{library}' does not exist.")
        raise typer.Exit(code=1)
    state.console.print(f"Deleted library '{library}'")


@app.command("exists")
def library_exists(library: LibraryArgument) -> None:
    """Exit with status 0 when the library exists, 1 otherwise."""
    with store_errors():
        exists = get_cli_state().store().library_exists(library)
    typer.echo("yes" if exists else "no")
    if not exists:
        raise typer.Exit(code=1)


__all__ = ["app"]
