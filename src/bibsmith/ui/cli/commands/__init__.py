"""CLI command implementations exposed via `bibsmith.ui.cli`.

Re-exports the Typer sub-applications and commands defined in the sibling
modules so they can be imported using dotted paths
(e.g. ``bibsmith.ui.cli.commands.entries_app``).
"""

from __future__ import annotations

from .entries import app as entries_app
from .libraries import app as libraries_app
from .merged import merged


__all__ = ["entries_app", "libraries_app", "merged"]
