"""Command printing the merged view of every library."""

from __future__ import annotations

from .._options import JsonOption
from ..presenter import print_catalog_overview, print_entries_json
from ..state import get_cli_state
from ..utils import store_errors


def merged(as_json: JsonOption = False) -> None:
    """Merge the entries of all libraries; later libraries win on shared keys."""
    with store_errors():
        catalog = get_cli_state().store().catalog()
        entries = catalog.get_all_entries()
    if as_json:
        print_entries_json(entries)
    else:
        print_catalog_overview(catalog, entries)


__all__ = ["merged"]
