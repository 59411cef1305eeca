"""Helpers shared by the CLI commands."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

import typer

from bibsmith.core import (
    BibsmithError,
    CitationKeyConflictError,
    Entry,
    EntryValidationError,
    LibraryDecodeError,
    LibraryExistsError,
    LibraryIOError,
    LibraryNotFoundError,
    parse_field_assignments,
)

from .state import emit_error, get_cli_state


_ERROR_LABELS: tuple[tuple[type[BibsmithError], str], ...] = (
    (LibraryNotFoundError, "not found"),
    (LibraryExistsError, "already exists"),
    (CitationKeyConflictError, "conflict"),
    (EntryValidationError, "invalid entry"),
    (LibraryDecodeError, "unreadable library"),
    (LibraryIOError, "i/o failure"),
)


def error_label(exc: BibsmithError) -> str:
    """Return the short category shown in front of store errors."""
    for error_type, label in _ERROR_LABELS:
        if isinstance(exc, error_type):
            return label
    return "error"


@contextmanager
def store_errors() -> Iterator[None]:
    """Report store errors on stderr and exit with status 1."""
    try:
        yield
    except BibsmithError as exc:
        if get_cli_state().show_tracebacks:
            raise
        emit_error(f"{error_label(exc)}: {exc}", exception=exc)
        raise typer.Exit(code=1) from exc


def build_entry(
    *,
    key: str | None,
    entry_type: str | None,
    fields: Sequence[str] | None,
    from_bib: Path | None,
) -> Entry:
    """Assemble an entry from CLI options, optionally seeded from a BibTeX file.

    Explicit options override the values read from ``from_bib``.
    """
    base = Entry()
    if from_bib is not None:
        base = read_single_entry(from_bib)
    merged_fields = dict(base.fields)
    merged_fields.update(parse_field_assignments(fields or ()))
    return Entry(
        key=key if key is not None else base.key,
        entry_type=entry_type or base.entry_type,
        fields=merged_fields,
    )


def read_single_entry(path: Path) -> Entry:
    """Decode a BibTeX file that must contain exactly one entry."""
    store = get_cli_state().store()
    try:
        payload = path.read_text(encoding=store.config.encoding)
    except (OSError, UnicodeError) as exc:
        raise LibraryIOError(f"Unable to read '{path}': {exc}") from exc
    entries = store.codec.decode(payload)
    if not entries:
        raise EntryValidationError(f"'{path}' does not contain an entry.")
    if len(entries) > 1:
        raise EntryValidationError(f"'{path}' must contain a single entry.")
    return entries[0]


__all__ = ["build_entry", "error_label", "read_single_entry", "store_errors"]
