"""Resolution of library names to files inside a working directory."""

from __future__ import annotations

import logging
from pathlib import Path


logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".bib"


class LibraryPathResolver:
    """Map library names to canonical file paths within a flat directory."""

    def __init__(self, working_dir: Path | str, extension: str = DEFAULT_EXTENSION) -> None:
        self.working_dir = Path(working_dir)
        self.extension = extension

    def normalise_name(self, name: str) -> str:
        """Append the library extension when it is missing."""
        if not name:
            raise ValueError("Library name must not be empty.")
        return name if name.endswith(self.extension) else f"{name}{self.extension}"

    def resolve(self, name: str) -> Path:
        """Return the path of the file backing the named library."""
        path = self.working_dir / self.normalise_name(name)
        logger.debug("Resolved library '%s' to %s", name, path)
        return path

    def is_library_file(self, path: Path) -> bool:
        """Return whether a directory listing entry counts as a library."""
        return path.name.endswith(self.extension) and not path.is_dir()

    def library_name(self, path: Path | str) -> str:
        """Return the display name of a library file, without its extension."""
        name = Path(path).name
        if name.endswith(self.extension) and len(name) > len(self.extension):
            return name[: -len(self.extension)]
        return name


__all__ = ["DEFAULT_EXTENSION", "LibraryPathResolver"]
