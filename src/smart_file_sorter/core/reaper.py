"""Removal of folders left empty after organizing."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from smart_file_sorter.core.session import LogSink

logger = logging.getLogger(__name__)


def reap_empty_folders(working_dir: Path, log: LogSink, only: Iterable[Path] | None = None) -> list[Path]:
    """Remove the empty immediate subdirectories of working_dir.

    Only one level is inspected and working_dir itself is never removed.
    Path.rmdir() refuses non-empty directories, so a folder that gains a
    file between the check and the removal is logged and left alone.

    Args:
        working_dir: Directory whose subfolders are inspected.
        log: Session log; one line per removal or failure.
        only: When given, only these subdirectories are candidates. Empty
            folders outside this set are left in place.

    Returns:
        List of removed directories.
    """
    removed: list[Path] = []

    try:
        children = sorted(working_dir.iterdir())
    except OSError as e:
        log.error(f"Cannot list {working_dir}: {e}")
        return removed

    if only is not None:
        base = working_dir.resolve()
        allowed = {path.name for path in only if path.parent.resolve() == base}
        children = [child for child in children if child.name in allowed]

    for child in children:
        try:
            if child.is_symlink() or not child.is_dir() or any(child.iterdir()):
                continue
        except OSError as e:
            logger.debug(f"Skipping {child}: {e}")
            continue

        try:
            child.rmdir()
        except OSError as e:
            log.error(f"Could not remove empty folder {child.name}: {e}")
            continue

        log.append(f"Removed empty folder: {child.name}")
        removed.append(child)

    return removed
