"""Core primitives of the bibliography store.

Architecture
: `LibraryStore` performs load-mutate-persist cycles against one working
  directory, delegating file parsing to an injected `LibraryCodec`
  (`BibtexCodec` by default) and file replacement to `atomic_write_text`.
: `Catalog` folds every library of a store into a single merged list and
  absorbs per-library load failures as `CatalogIssue` records.
: `StoreRegistry` is owned by the application and guarantees that each
  canonical working directory maps to exactly one store.
"""

from __future__ import annotations

from .atomic import atomic_write_text
from .catalog import Catalog, CatalogIssue, merge_entries
from .codec import BibtexCodec, LibraryCodec
from .config import StoreConfig, load_config, resolve_working_dir
from .diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter, RecordingEmitter
from .entries import Entry, parse_field_assignments
from .exceptions import (
    BibsmithError,
    CitationKeyConflictError,
    ConfigError,
    EntryValidationError,
    LibraryDecodeError,
    LibraryExistsError,
    LibraryIOError,
    LibraryNotFoundError,
    MissingCitationKeyError,
    WorkingDirectoryError,
)
from .paths import LibraryPathResolver
from .registry import StoreRegistry
from .store import LibraryStore


__all__ = [
    "BibsmithError",
    "BibtexCodec",
    "Catalog",
    "CatalogIssue",
    "CitationKeyConflictError",
    "ConfigError",
    "DiagnosticEmitter",
    "Entry",
    "EntryValidationError",
    "LibraryCodec",
    "LibraryDecodeError",
    "LibraryExistsError",
    "LibraryIOError",
    "LibraryNotFoundError",
    "LibraryPathResolver",
    "LibraryStore",
    "LoggingEmitter",
    "MissingCitationKeyError",
    "NullEmitter",
    "RecordingEmitter",
    "StoreConfig",
    "StoreRegistry",
    "WorkingDirectoryError",
    "atomic_write_text",
    "load_config",
    "merge_entries",
    "parse_field_assignments",
    "resolve_working_dir",
]
