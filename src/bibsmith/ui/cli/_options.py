"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


ENTRY_PANEL = "Entry Contents"
OUTPUT_PANEL = "Output"
DIAGNOSTICS_PANEL = "Diagnostics"

LibraryArgument = Annotated[
    str,
    typer.Argument(
        metavar="LIBRARY",
        help="Library name, with or without the .bib extension.",
    ),
]

CitationKeyArgument = Annotated[
    str,
    typer.Argument(metavar="KEY", help="Citation key of the targeted entry."),
]

JsonOption = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Print entries as JSON instead of formatted panels.",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

KeyOption = Annotated[
    str | None,
    typer.Option(
        "--key",
        "-k",
        help="Citation key of the entry.",
        rich_help_panel=ENTRY_PANEL,
    ),
]

EntryTypeOption = Annotated[
    str | None,
    typer.Option(
        "--type",
        "-t",
        help="BibTeX entry type such as article or book (default: misc).",
        rich_help_panel=ENTRY_PANEL,
    ),
]

FieldOption = Annotated[
    list[str] | None,
    typer.Option(
        "--field",
        "-f",
        metavar="NAME=VALUE",
        help="Entry field; repeat the option for several fields.",
        rich_help_panel=ENTRY_PANEL,
    ),
]

FromBibOption = Annotated[
    Path | None,
    typer.Option(
        "--from-bib",
        help="Read the entry from a BibTeX file holding a single entry.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=ENTRY_PANEL,
    ),
]

DirectoryOption = Annotated[
    Path | None,
    typer.Option(
        "--dir",
        "-d",
        help="Working directory holding the libraries (default: $BIBSMITH_HOME).",
        file_okay=False,
        dir_okay=True,
    ),
]

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="YAML configuration file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show full tracebacks when an unexpected error occurs.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]
