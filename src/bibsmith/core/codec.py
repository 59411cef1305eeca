"""Codecs translating library files to entry lists and back.

Architecture
: A codec owns the on-disk format of a library. Besides `decode` and `encode`
  it exposes `prepare`, which validates a new entry and returns it in the exact
  form a later `decode` produces, and `fold_key`, the key comparison the format
  applies when it reads a file back.
: `LibraryStore` calls `prepare` and `fold_key` before touching the disk, so an
  entry the format cannot hold is rejected up front and never written.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
import re
from string import ascii_letters, digits
from typing import Protocol, runtime_checkable

from pybtex.database import BibliographyData
from pybtex.database import Entry as PybtexEntry
from pybtex.database.input import bibtex
from pybtex.database.output import bibtex as bibtex_output
from pybtex.exceptions import PybtexError
from pybtex.textutils import normalize_whitespace

from .entries import Entry
from .exceptions import EntryValidationError, LibraryDecodeError, MissingCitationKeyError


# Identifier alphabet the pybtex scanner accepts for entry types and field names.
_NAME_CHARS = ascii_letters + "@!$&*+-./:;<>?[\\]^_`|~"
_NAME_PATTERN = re.compile(
    rf"[{re.escape(_NAME_CHARS)}][{re.escape(_NAME_CHARS + digits)}]*"
)
# Characters that end a citation key for the pybtex reader.
_KEY_UNREADABLE = re.compile(r"[\s,}]")
# Characters other BibTeX tools reject in keys; refused for new entries only.
_KEY_DISCOURAGED = re.compile(r"[{\"#%'()=]")


@runtime_checkable
class LibraryCodec(Protocol):
    """Decode library text into entries and encode entries back to text."""

    def decode(self, payload: str) -> list[Entry]: ...

    def encode(self, entries: Sequence[Entry]) -> str: ...

    def prepare(self, entry: Entry) -> Entry: ...

    def fold_key(self, key: str) -> str: ...


class BibtexCodec:
    """BibTeX codec backed by pybtex.

    Person fields are kept as plain strings so that ``author`` and ``editor``
    values survive a decode/encode cycle unchanged. pybtex collapses runs of
    whitespace in field values and compares citation keys and field names
    case-insensitively; `prepare` and `fold_key` apply the same rules.
    """

    def decode(self, payload: str) -> list[Entry]:
        parser = bibtex.Parser(person_fields=())
        try:
            data = parser.parse_string(payload)
        except PybtexError as exc:
            raise LibraryDecodeError(f"Failed to parse BibTeX payload: {exc}") from exc
        return [_entry_from_pybtex(key, entry) for key, entry in data.entries.items()]

    def encode(self, entries: Sequence[Entry]) -> str:
        bib_entries: dict[str, PybtexEntry] = {}
        seen: set[str] = set()
        for entry in entries:
            canonical = _canonical(entry)
            key = canonical.key or ""
            folded = self.fold_key(key)
            if folded in seen:
                raise EntryValidationError(f"Duplicate citation key '{key}'.")
            seen.add(folded)
            bib_entries[key] = PybtexEntry(canonical.entry_type, fields=dict(canonical.fields))
        if not bib_entries:
            return ""
        try:
            raw_text = _VerbatimWriter().to_string(BibliographyData(entries=bib_entries))
        except PybtexError as exc:
            raise EntryValidationError(f"Entries cannot be written as BibTeX: {exc}") from exc
        return raw_text.rstrip() + "\n"

    def prepare(self, entry: Entry) -> Entry:
        """Validate a new entry and return it as it will read back from disk."""
        if entry.key and _KEY_DISCOURAGED.search(entry.key):
            raise EntryValidationError(
                f"Citation key '{entry.key}' must not contain any of {{ \" # % ' ( ) =."
            )
        return _canonical(entry)

    def fold_key(self, key: str) -> str:
        return key.lower()


class _VerbatimWriter(bibtex_output.Writer):
    """BibTeX writer emitting field values unchanged.

    The stock writer escapes characters such as ``%`` and ``_`` for LaTeX, which
    the parser does not undo.
    """

    def _encode(self, text: str) -> str:
        return text


def _canonical(entry: Entry) -> Entry:
    key = entry.key
    if not key:
        raise MissingCitationKeyError()
    if _KEY_UNREADABLE.search(key):
        raise EntryValidationError(
            f"Citation key '{key}' must not contain whitespace, ',' or '}}'."
        )
    if not _NAME_PATTERN.fullmatch(entry.entry_type):
        raise EntryValidationError(f"'{entry.entry_type}' is not a valid BibTeX entry type.")

    fields: dict[str, str] = {}
    seen: set[str] = set()
    for name, value in entry.fields.items():
        if not _NAME_PATTERN.fullmatch(name):
            raise EntryValidationError(f"'{name}' is not a valid BibTeX field name.")
        if name.lower() in seen:
            raise EntryValidationError(f"Field '{name}' appears more than once in '{key}'.")
        seen.add(name.lower())
        if not _braces_balanced(value):
            raise EntryValidationError(f"Field '{name}' of '{key}' has unbalanced braces.")
        fields[name] = normalize_whitespace(value)
    return Entry(key=key, entry_type=entry.entry_type, fields=fields)


def _braces_balanced(value: str) -> bool:
    depth = 0
    for char in value:
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def _entry_from_pybtex(key: str, entry: PybtexEntry) -> Entry:
    fields = {str(name): str(value) for name, value in _iter_items(entry.fields)}
    for role, persons in _iter_items(entry.persons):
        # Only reached when a caller re-enables person parsing.
        fields.setdefault(str(role), " and ".join(str(person) for person in persons))
    return Entry(key=str(key), entry_type=entry.type, fields=fields)


def _iter_items(value: object) -> Iterable[tuple[object, object]]:
    if isinstance(value, Mapping):
        return value.items()
    items = getattr(value, "items", None)
    if callable(items):
        return items()
    return ()


__all__ = ["BibtexCodec", "LibraryCodec"]
