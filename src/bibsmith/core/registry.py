"""Application-owned registry guaranteeing one store per working directory."""

from __future__ import annotations

from collections.abc import Callable
import logging
from pathlib import Path
from threading import Lock

from .catalog import Catalog
from .store import LibraryStore


logger = logging.getLogger(__name__)

StoreFactory = Callable[[Path], LibraryStore]


def canonical_path(path: Path | str) -> Path:
    """Return the absolute, symlink-free form used to key the registry."""
    return Path(path).expanduser().resolve()


class StoreRegistry:
    """Hand out a single `LibraryStore` per canonical working directory.

    Every caller mutating a directory goes through the same store, and hence
    the same mutation lock. The registry is an explicit object: create one per
    application context and pass it to the code that needs stores.
    """

    def __init__(self, factory: StoreFactory | None = None) -> None:
        self._factory: StoreFactory = factory or LibraryStore
        self._stores: dict[Path, LibraryStore] = {}
        self._lock = Lock()

    def get(self, working_dir: Path | str) -> LibraryStore:
        """Return the store for ``working_dir``, building it on first use."""
        key = canonical_path(working_dir)
        store = self._stores.get(key)
        if store is not None:
            return store
        with self._lock:
            store = self._stores.get(key)
            if store is None:
                store = self._factory(key)
                self._stores[key] = store
                logger.debug("Registered library store for %s", key)
            return store

    def catalog(self, working_dir: Path | str) -> Catalog:
        """Return a catalog over the store of ``working_dir``."""
        return self.get(working_dir).catalog()

    def discard(self, working_dir: Path | str) -> bool:
        """Forget the store of ``working_dir``; return whether one was registered."""
        with self._lock:
            return self._stores.pop(canonical_path(working_dir), None) is not None

    def clear(self) -> None:
        with self._lock:
            self._stores.clear()

    def __contains__(self, working_dir: object) -> bool:
        if not isinstance(working_dir, (str, Path)):
            return False
        return canonical_path(working_dir) in self._stores

    def __len__(self) -> int:
        return len(self._stores)


__all__ = ["StoreFactory", "StoreRegistry", "canonical_path"]
