"""Render store diagnostics on the CLI consoles."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from bibsmith.core.diagnostics import format_event_message

from .state import get_cli_state, render_message


if TYPE_CHECKING:
    from .state import CLIState


# Verbosity needed before an event is shown; unlisted events need ``-v``.
_EVENT_VERBOSITY: dict[str, int] = {"catalog_merged": 2}


class CliEmitter:
    """Emitter bound to one CLI state.

    Warnings and errors always reach stderr. Mutation events are logged with
    ``-v`` and merge summaries with ``-vv``.
    """

    def __init__(self, state: CLIState | None = None, *, debug_enabled: bool | None = None) -> None:
        self._state = state or get_cli_state()
        if debug_enabled is None:
            debug_enabled = self._state.show_tracebacks
        self.debug_enabled = bool(debug_enabled)

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        render_message("warning", message, exception=exc, state=self._state)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        render_message("error", message, exception=exc, state=self._state)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        message = format_event_message(name, payload)
        if message is None:
            return
        if self._state.verbosity >= _EVENT_VERBOSITY.get(name, 1):
            self._state.err_console.log(message)


__all__ = ["CliEmitter"]
