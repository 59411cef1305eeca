"""Diagnostics raised by the store and the catalog.

Events
: `library_created`, `library_deleted` carry `library` and `path`.
: `entry_inserted`, `entry_deleted` carry `library` and `key`.
: `entry_updated` carries `library`, `key` and `new_key`.
: `catalog_merged` carries `entries` and `libraries` counts.

Mutation events are logged at INFO, `catalog_merged` at DEBUG. Every record
carries the event name and payload as `bibsmith_event` / `bibsmith_payload`
attributes so handlers can filter on them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import logging
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)

_EVENT_TEMPLATES: dict[str, str] = {
    "library_created": "Created library '{library}'",
    "library_deleted": "Deleted library '{library}'",
    "entry_inserted": "Added '{key}' to library '{library}'",
    "entry_updated": "Updated '{key}' in library '{library}'",
    "entry_deleted": "Removed '{key}' from library '{library}'",
    "catalog_merged": "Merged {entries} entries from {libraries} libraries",
}

_EVENT_LEVELS: dict[str, int] = {"catalog_merged": logging.DEBUG}


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Interface used to surface warnings, errors, and store events."""

    debug_enabled: bool

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def error(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Emitter that ignores every diagnostic."""

    debug_enabled: bool = False

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


@dataclass(slots=True)
class RecordingEmitter:
    """Emitter keeping every diagnostic in memory, in arrival order."""

    debug_enabled: bool = False
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    events: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.errors.append(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        self.events.append((name, dict(payload)))

    def event_names(self) -> list[str]:
        return [name for name, _ in self.events]


class LoggingEmitter:
    """Emitter forwarding diagnostics to the standard logging module."""

    def __init__(
        self, *, logger_obj: logging.Logger | None = None, debug_enabled: bool = False
    ) -> None:
        self._logger = logger_obj or logger
        self.debug_enabled = debug_enabled

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        exc_info = exc if exc is not None and self.debug_enabled else None
        self._logger.warning(message, exc_info=exc_info)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self._logger.error(message, exc_info=exc)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        data = dict(payload)
        extra = {"bibsmith_event": name, "bibsmith_payload": data}
        message = format_event_message(name, data)
        if message is None:
            self._logger.debug("store event %s: %s", name, data, extra=extra)
            return
        self._logger.log(_EVENT_LEVELS.get(name, logging.INFO), message, extra=extra)


def format_event_message(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a one-line summary of a store event, or ``None`` when unknown."""
    template = _EVENT_TEMPLATES.get(name)
    if template is None:
        return None
    data = {"library": "<unknown>", "key": "<unknown>", "entries": 0, "libraries": 0}
    data.update({field_name: value for field_name, value in payload.items() if value})
    message = template.format_map(data)
    new_key = payload.get("new_key")
    if name == "entry_updated" and new_key and new_key != data["key"]:
        message += f" as '{new_key}'"
    return message


__all__ = [
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "RecordingEmitter",
    "format_event_message",
]
