"""Bibliography entry records handled by the library store.

An `Entry` is a plain record: an optional citation key, a lower-cased entry
type and an ordered mapping of field names to string values. Entries carry no
reference to the library they were loaded from; they only exist on disk as part
of a library file.

```pycon
>>> entry = Entry("smith2020", "Article", {"title": "X"})
>>> entry.entry_type
'article'
>>> entry.to_dict()
{'key': 'smith2020', 'type': 'article', 'fields': {'title': 'X'}}
```
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .exceptions import EntryValidationError


DEFAULT_ENTRY_TYPE = "misc"


@dataclass(slots=True)
class Entry:
    """A single bibliography record."""

    key: str | None = None
    entry_type: str = DEFAULT_ENTRY_TYPE
    fields: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.key is not None:
            self.key = self.key.strip() or None
        self.entry_type = (self.entry_type or DEFAULT_ENTRY_TYPE).strip().lower()
        self.fields = {str(name): str(value) for name, value in self.fields.items()}

    @property
    def has_key(self) -> bool:
        """Return whether the entry can be addressed by citation key."""
        return bool(self.key)

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return a field value looked up case-insensitively."""
        if name in self.fields:
            return self.fields[name]
        lowered = name.lower()
        for field_name, value in self.fields.items():
            if field_name.lower() == lowered:
                return value
        return default

    def with_key(self, key: str | None) -> Entry:
        """Return a copy of the entry carrying a different citation key."""
        return Entry(key=key, entry_type=self.entry_type, fields=dict(self.fields))

    def to_dict(self) -> dict[str, Any]:
        """Return the portable representation used by JSON output."""
        return {"key": self.key, "type": self.entry_type, "fields": dict(self.fields)}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Entry:
        """Build an entry from its portable representation."""
        if not isinstance(payload, Mapping):
            raise EntryValidationError("Entry payload must be a mapping.")
        raw_fields = payload.get("fields") or {}
        if not isinstance(raw_fields, Mapping):
            raise EntryValidationError("Entry 'fields' must be a mapping of strings.")
        key = payload.get("key")
        if key is not None and not isinstance(key, str):
            raise EntryValidationError("Entry 'key' must be a string.")
        entry_type = payload.get("type") or DEFAULT_ENTRY_TYPE
        return cls(key=key, entry_type=str(entry_type), fields=dict(raw_fields))


def parse_field_assignments(assignments: Iterable[str]) -> dict[str, str]:
    """Parse ``name=value`` strings into an ordered field mapping."""
    fields: dict[str, str] = {}
    for assignment in assignments:
        name, separator, value = assignment.partition("=")
        name = name.strip()
        if not separator or not name:
            raise EntryValidationError(
                f"Invalid field assignment '{assignment}'; expected name=value."
            )
        fields[name] = value.strip()
    return fields


def find_entry(
    entries: Iterable[Entry],
    key: str,
    *,
    fold: Callable[[str], str] | None = None,
) -> Entry | None:
    """Return the first entry carrying the given citation key.

    ``fold`` normalises keys before comparison, e.g. `str.lower` for formats
    whose keys are case-insensitive.
    """
    wanted = fold(key) if fold else key
    for entry in entries:
        if entry.key is None:
            continue
        if (fold(entry.key) if fold else entry.key) == wanted:
            return entry
    return None


__all__ = [
    "DEFAULT_ENTRY_TYPE",
    "Entry",
    "find_entry",
    "parse_field_assignments",
]
