"""Primary public API for bibsmith."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from bibsmith.core import (
    BibsmithError,
    BibtexCodec,
    Catalog,
    CatalogIssue,
    CitationKeyConflictError,
    ConfigError,
    Entry,
    EntryValidationError,
    LibraryCodec,
    LibraryDecodeError,
    LibraryExistsError,
    LibraryIOError,
    LibraryNotFoundError,
    LibraryStore,
    MissingCitationKeyError,
    StoreConfig,
    StoreRegistry,
    WorkingDirectoryError,
    load_config,
)


try:
    __version__ = _pkg_version("bibsmith")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "BibsmithError",
    "BibtexCodec",
    "Catalog",
    "CatalogIssue",
    "CitationKeyConflictError",
    "ConfigError",
    "Entry",
    "EntryValidationError",
    "LibraryCodec",
    "LibraryDecodeError",
    "LibraryExistsError",
    "LibraryIOError",
    "LibraryNotFoundError",
    "LibraryStore",
    "MissingCitationKeyError",
    "StoreConfig",
    "StoreRegistry",
    "WorkingDirectoryError",
    "__version__",
    "load_config",
]
