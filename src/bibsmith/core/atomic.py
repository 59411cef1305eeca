"""Atomic replacement of library files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
import shutil
import tempfile


logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".bak"


def backup_path(target: Path) -> Path:
    """Return the location of the backup kept for a library file."""
    return target.with_name(target.name + BACKUP_SUFFIX)


def atomic_write_text(
    target: Path,
    payload: str,
    *,
    encoding: str = "utf-8",
    make_backup: bool = False,
) -> None:
    """Write ``payload`` to a sibling temporary file, then swap it into place.

    Readers observe either the previous file or the new one, never a partial
    write. When ``make_backup`` is set the previous contents are copied to
    ``<target>.bak`` before the swap.
    """
    fd, temp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        logger.debug("Wrote library snapshot to temporary file %s", temp_path)
        if make_backup and target.exists():
            shutil.copy2(target, backup_path(target))
            logger.debug("Backed up %s", target)
        temp_path.replace(target)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


__all__ = ["BACKUP_SUFFIX", "atomic_write_text", "backup_path"]
