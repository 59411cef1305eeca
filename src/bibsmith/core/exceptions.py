"""Custom exception hierarchy for the bibliography store."""

from __future__ import annotations

from pathlib import Path


class BibsmithError(RuntimeError):
    """Base exception for library store failures."""


class LibraryNotFoundError(BibsmithError):
    """Raised when the targeted library file does not exist."""

    def __init__(self, library: str, path: Path | None = None) -> None:
        self.library = library
        self.path = path
        super().__init__(f"Library '{library}' does not exist.")


class LibraryExistsError(BibsmithError):
    """Raised when creating a library whose backing file is already present."""

    def __init__(self, library: str, path: Path | None = None) -> None:
        self.library = library
        self.path = path
        super().__init__(f"Library '{library}' already exists.")


class EntryValidationError(BibsmithError, ValueError):
    """Raised when an entry cannot be written as provided."""


class MissingCitationKeyError(EntryValidationError):
    """Raised when a write targets an entry without a citation key."""

    def __init__(self) -> None:
        super().__init__("Entry does not contain a citation key.")


class CitationKeyConflictError(BibsmithError):
    """Raised when a citation key is already taken in the target library."""

    def __init__(self, library: str, key: str) -> None:
        self.library = library
        self.key = key
        super().__init__(f"Library '{library}' already contains an entry with key '{key}'.")


class LibraryDecodeError(BibsmithError):
    """Raised when the codec cannot parse the contents of a library file."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


class LibraryIOError(BibsmithError):
    """Raised when a filesystem operation fails for reasons other than absence."""


class WorkingDirectoryError(LibraryIOError):
    """Raised when the working directory cannot be created or used."""


class ConfigError(BibsmithError, ValueError):
    """Raised when store configuration cannot be loaded or validated."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "BibsmithError",
    "CitationKeyConflictError",
    "ConfigError",
    "EntryValidationError",
    "LibraryDecodeError",
    "LibraryExistsError",
    "LibraryIOError",
    "LibraryNotFoundError",
    "MissingCitationKeyError",
    "WorkingDirectoryError",
    "exception_hint",
    "exception_messages",
]
