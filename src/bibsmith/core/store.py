"""File-backed storage of bibliography libraries.

Architecture
: `LibraryStore` owns every library file of one working directory. Each
  operation reloads the authoritative file through the injected codec, applies
  its change in memory and writes the complete library back with an atomic
  replace, so no data is cached between calls.
: Entries are validated and normalised by the codec before any file is read,
  and keys are compared the way the codec compares them. A write never
  produces a file the codec cannot read back.
: Mutations (insert, update, delete) are serialised by a per-store re-entrant
  lock. Reads take no lock: they may observe the state before or after an
  in-flight write, never a partially written file.
: Errors are typed (`LibraryNotFoundError`, `CitationKeyConflictError`,
  `MissingCitationKeyError`, `LibraryDecodeError`, `LibraryIOError`) so front
  ends can map them to precise responses. Delete-style operations answer with a
  boolean instead of raising when there is nothing to delete.

Usage Example

```pycon
>>> store = LibraryStore("/tmp/papers")
>>> store.create_library("smith2020")
>>> stored = store.insert_entry("smith2020", Entry("abc1", "article", {"title": "X"}))
>>> store.get_entry("smith2020", "abc1").fields["title"]
'X'
```
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
from pathlib import Path
from threading import RLock
from typing import cast

from .atomic import atomic_write_text
from .catalog import Catalog
from .codec import BibtexCodec, LibraryCodec
from .config import StoreConfig
from .diagnostics import DiagnosticEmitter, LoggingEmitter
from .entries import Entry, find_entry
from .exceptions import (
    CitationKeyConflictError,
    LibraryDecodeError,
    LibraryExistsError,
    LibraryIOError,
    LibraryNotFoundError,
    MissingCitationKeyError,
    WorkingDirectoryError,
)
from .paths import LibraryPathResolver


logger = logging.getLogger(__name__)


class LibraryStore:
    """Create, read, update and delete entries of the libraries in one directory."""

    def __init__(
        self,
        working_dir: Path | str | None = None,
        *,
        config: StoreConfig | None = None,
        codec: LibraryCodec | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        if config is None:
            config = StoreConfig() if working_dir is None else StoreConfig(working_dir=working_dir)
        elif working_dir is not None:
            config = config.model_copy(update={"working_dir": Path(working_dir).expanduser()})
        self.config = config
        self.codec: LibraryCodec = codec or BibtexCodec()
        self.emitter: DiagnosticEmitter = emitter or LoggingEmitter()
        self.resolver = LibraryPathResolver(config.working_dir, config.extension)
        self._lock = RLock()
        self._ensure_working_dir()

    @property
    def working_dir(self) -> Path:
        return self.config.working_dir

    def _ensure_working_dir(self) -> None:
        if self.working_dir.is_dir():
            return
        try:
            self.working_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("Could not create working directory %s", self.working_dir)
            raise WorkingDirectoryError(
                f"Could not create working directory '{self.working_dir}': {exc}"
            ) from exc
        logger.info("Created working directory %s", self.working_dir)

    def path_for(self, name: str) -> Path:
        """Return the file backing the named library."""
        return self.resolver.resolve(name)

    def catalog(self) -> Catalog:
        """Return a catalog aggregating the libraries of this store."""
        return Catalog(self, emitter=self.emitter)

    # ------------------------------------------------------------------ libraries

    def list_libraries(self) -> list[str]:
        """Return the file names of every library in the working directory."""
        try:
            children = list(self.working_dir.iterdir())
        except OSError as exc:
            raise LibraryIOError(
                f"Unable to list libraries in '{self.working_dir}': {exc}"
            ) from exc
        return [child.name for child in children if self.resolver.is_library_file(child)]

    def create_library(self, name: str) -> None:
        """Create a new, empty library file."""
        path = self.path_for(name)
        try:
            with path.open("x", encoding=self.config.encoding):
                pass
        except FileExistsError as exc:
            raise LibraryExistsError(name, path) from exc
        except OSError as exc:
            raise LibraryIOError(f"Unable to create library '{name}': {exc}") from exc
        self.emitter.event("library_created", {"library": name, "path": str(path)})

    def delete_library(self, name: str) -> bool:
        """Remove the library file, returning whether one existed."""
        path = self.path_for(name)
        with self._lock:
            try:
                path.unlink()
            except FileNotFoundError:
                return False
            except OSError as exc:
                raise LibraryIOError(f"Unable to delete library '{name}': {exc}") from exc
        self.emitter.event("library_deleted", {"library": name, "path": str(path)})
        return True

    def library_exists(self, name: str) -> bool:
        """Return whether the library file is present."""
        return self.path_for(name).exists()

    # ------------------------------------------------------------------ reads

    def get_entries(self, name: str) -> list[Entry]:
        """Return every entry of the library in file order."""
        return self._load(name, self.path_for(name))

    def get_entry(self, name: str, key: str) -> Entry | None:
        """Return the entry carrying ``key``, or ``None`` when absent.

        Should the file hold several entries under the same key only one of them
        is returned.
        """
        return find_entry(self._load(name, self.path_for(name)), key, fold=self.codec.fold_key)

    # ------------------------------------------------------------------ writes

    def insert_entry(self, name: str, entry: Entry) -> Entry:
        """Append an entry whose citation key is not yet used by the library.

        Returns the entry as stored, which is what later reads return.
        """
        entry = self._prepare(entry)
        with self._lock:
            self._insert(name, entry)
        self.emitter.event("entry_inserted", {"library": name, "key": entry.key})
        return entry

    def update_entry(self, name: str, key: str, entry: Entry) -> Entry:
        """Replace the entry stored under ``key`` with ``entry``.

        With the default ``two-step`` strategy the old entry is deleted and the
        new one inserted through two independent writes. A missing old entry is
        not an error. A failure between the two writes leaves the library
        without either entry; the ``in-place`` strategy avoids this by
        persisting once.
        """
        entry = self._prepare(entry)
        with self._lock:
            if self.config.update_strategy == "in-place":
                self._replace(name, key, entry)
            else:
                self._delete(name, key)
                self._insert(name, entry)
        self.emitter.event("entry_updated", {"library": name, "key": key, "new_key": entry.key})
        return entry

    def delete_entry(self, name: str, key: str) -> bool:
        """Remove the entry stored under ``key``, returning whether one was found."""
        with self._lock:
            deleted = self._delete(name, key)
        if deleted:
            self.emitter.event("entry_deleted", {"library": name, "key": key})
        return deleted

    def _prepare(self, entry: Entry) -> Entry:
        if not entry.has_key:
            raise MissingCitationKeyError()
        return self.codec.prepare(entry)

    def _index_of(self, entries: Sequence[Entry], key: str) -> int | None:
        wanted = self.codec.fold_key(key)
        for index, entry in enumerate(entries):
            if entry.key is not None and self.codec.fold_key(entry.key) == wanted:
                return index
        return None

    def _insert(self, name: str, entry: Entry) -> None:
        path = self.path_for(name)
        key = cast(str, entry.key)
        entries = self._load(name, path)
        if self._index_of(entries, key) is not None:
            raise CitationKeyConflictError(name, key)
        entries.append(entry)
        self._persist(name, path, entries)

    def _delete(self, name: str, key: str) -> bool:
        path = self.path_for(name)
        try:
            entries = self._load(name, path)
        except LibraryNotFoundError:
            return False
        index = self._index_of(entries, key)
        if index is None:
            return False
        del entries[index]
        self._persist(name, path, entries)
        return True

    def _replace(self, name: str, key: str, entry: Entry) -> None:
        path = self.path_for(name)
        entries = self._load(name, path)
        index = self._index_of(entries, key)
        new_key = cast(str, entry.key)
        clash = self._index_of(entries, new_key)
        if clash is not None and clash != index:
            raise CitationKeyConflictError(name, new_key)
        if index is None:
            entries.append(entry)
        else:
            entries[index] = entry
        self._persist(name, path, entries)

    # ------------------------------------------------------------------ io

    def _load(self, name: str, path: Path) -> list[Entry]:
        try:
            payload = path.read_text(encoding=self.config.encoding)
        except FileNotFoundError as exc:
            raise LibraryNotFoundError(name, path) from exc
        except UnicodeDecodeError as exc:
            raise LibraryDecodeError(
                f"Library '{name}' is not valid {self.config.encoding} text: {exc}", path=path
            ) from exc
        except OSError as exc:
            raise LibraryIOError(f"Unable to read library '{name}': {exc}") from exc

        try:
            entries = self.codec.decode(payload)
        except LibraryDecodeError as exc:
            raise LibraryDecodeError(
                f"Library '{name}' could not be decoded: {exc}", path=path
            ) from exc
        logger.debug("Loaded %d entries from %s", len(entries), path)
        return list(entries)

    def _persist(self, name: str, path: Path, entries: Sequence[Entry]) -> None:
        payload = self.codec.encode(entries)
        try:
            atomic_write_text(
                path,
                payload,
                encoding=self.config.encoding,
                make_backup=self.config.make_backup,
            )
        except (OSError, UnicodeError) as exc:
            raise LibraryIOError(f"Unable to write library '{name}': {exc}") from exc
        logger.debug("Persisted %d entries to %s", len(entries), path)


__all__ = ["LibraryStore"]
