"""Aggregation of every library in a working directory."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from .diagnostics import DiagnosticEmitter, NullEmitter
from .entries import Entry
from .exceptions import LibraryDecodeError, LibraryIOError, LibraryNotFoundError


if TYPE_CHECKING:
    from .store import LibraryStore


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CatalogIssue:
    """Represents a library that could not be loaded during aggregation."""

    message: str
    library: str
    source: Path | None = None


class Catalog:
    """Merged, read-only view over the libraries of one store.

    Libraries are folded in the order `LibraryStore.list_libraries` reports
    them, which follows the filesystem listing and is not stable across
    platforms. A keyed entry replaces an earlier entry with the same key, as
    compared by the store codec, in place; new keys and keyless entries are
    appended.
    """

    def __init__(self, store: LibraryStore, *, emitter: DiagnosticEmitter | None = None) -> None:
        self._store = store
        self._emitter: DiagnosticEmitter = emitter or NullEmitter()
        self._issues: list[CatalogIssue] = []
        self._stats: list[tuple[str, int | None]] = []

    @property
    def issues(self) -> Sequence[CatalogIssue]:
        """Return the libraries skipped by the most recent aggregation."""
        return tuple(self._issues)

    def library_stats(self) -> Sequence[tuple[str, int | None]]:
        """Return (library, entry_count) pairs, ``None`` marking a failed load."""
        return tuple(self._stats)

    def get_all_entries(self) -> list[Entry]:
        """Load every library and merge their entries into one list."""
        self._issues = []
        self._stats = []
        names = self._store.list_libraries()
        merged: list[Entry] = []
        positions: dict[str, int] = {}
        for name in names:
            merge_entries(
                merged, self._load(name), positions=positions, fold=self._store.codec.fold_key
            )
        self._emitter.event("catalog_merged", {"entries": len(merged), "libraries": len(names)})
        return merged

    def _load(self, name: str) -> list[Entry]:
        try:
            entries = self._store.get_entries(name)
        except (LibraryNotFoundError, LibraryDecodeError, LibraryIOError) as exc:
            source = self._store.path_for(name)
            self._issues.append(CatalogIssue(message=str(exc), library=name, source=source))
            self._stats.append((name, None))
            logger.debug("Skipping library %s: %s", source, exc)
            self._emitter.warning(f"Skipping library '{name}': {exc}", exc)
            return []
        self._stats.append((name, len(entries)))
        return entries


def merge_entries(
    target: list[Entry],
    entries: Iterable[Entry],
    *,
    positions: dict[str, int] | None = None,
    fold: Callable[[str], str] | None = None,
) -> list[Entry]:
    """Fold ``entries`` into ``target``; the last entry applied for a key wins.

    ``positions`` maps keys to their index in ``target`` and is rebuilt when not
    supplied. Pass the same mapping across calls to avoid rescanning. ``fold``
    normalises keys before they are compared.
    """
    normalise = fold or _identity
    if positions is None:
        positions = {
            normalise(entry.key): index for index, entry in enumerate(target) if entry.key
        }
    for entry in entries:
        if not entry.key:
            target.append(entry)
            continue
        folded = normalise(entry.key)
        index = positions.get(folded)
        if index is None:
            positions[folded] = len(target)
            target.append(entry)
        else:
            target[index] = entry
    return target


def _identity(key: str) -> str:
    return key


__all__ = ["Catalog", "CatalogIssue", "merge_entries"]
