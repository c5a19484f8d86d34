"""Directory listing and extension classification.

Lists the files directly inside a working directory (no recursion), turns
them into FileEntry objects keyed by normalized extension, and slices the
listing into fixed-size batches for the organizer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from smart_file_sorter.core.config import RunConfig, normalize_extension

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

logger = logging.getLogger(__name__)

# Extensions that are never organized, whatever the run config says
ALWAYS_EXCLUDED: frozenset[str] = frozenset({"js", "json"})


@dataclass(frozen=True)
class FileEntry:
    """A file name from a single directory listing.

    Attributes:
        name: File name relative to the working directory.
        extension: Normalized extension ('others' if the name has none).
    """

    name: str
    extension: str

    @classmethod
    def from_name(cls, name: str) -> FileEntry:
        """Create a FileEntry from a bare file name."""
        return cls(name=name, extension=normalize_extension(Path(name).suffix))

    def is_eligible(self, config: RunConfig) -> bool:
        """Check whether this entry may be organized under config."""
        return self.extension not in ALWAYS_EXCLUDED and self.extension not in config.exclude_ext


@dataclass(frozen=True)
class PlannedMove:
    """Destination planned for one entry by preview()."""

    name: str
    extension: str
    target_folder: str


def list_entries(root: Path, config: RunConfig | None = None) -> list[FileEntry]:
    """List the eligible files directly inside root.

    Directories are skipped. Entries are sorted by name so that slicing the
    listing into batches gives a stable global order.

    Args:
        root: Working directory to list.
        config: Run config whose exclusions apply; defaults to no exclusions.

    Returns:
        Eligible FileEntry objects.

    Raises:
        ValueError: If root is not a valid directory.
    """
    config = config or RunConfig()

    if not root.exists():
        raise ValueError(f"Directory does not exist: {root}")
    if not root.is_dir():
        raise ValueError(f"Path is not a directory: {root}")

    entries: list[FileEntry] = []
    for item in root.iterdir():
        try:
            if item.is_dir():
                continue
        except OSError as e:
            logger.warning(f"Cannot inspect {item}: {e}")
            continue

        entry = FileEntry.from_name(item.name)
        if entry.is_eligible(config):
            entries.append(entry)

    entries.sort(key=lambda e: e.name)
    return entries


def select_batch(entries: Sequence[FileEntry], batch_size: int, batch_number: int) -> list[FileEntry]:
    """Return the batch_number-th window of batch_size entries.

    A batch_size of 0 or less selects the whole listing.
    """
    if batch_size <= 0:
        return list(entries)
    start = batch_number * batch_size
    return list(entries[start:start + batch_size])


def iter_batches(entries: Sequence[FileEntry], batch_size: int) -> Iterator[list[FileEntry]]:
    """Yield consecutive fixed-size batches covering the whole listing."""
    if batch_size <= 0:
        if entries:
            yield list(entries)
        return
    for start in range(0, len(entries), batch_size):
        yield list(entries[start:start + batch_size])


def preview(entries: Sequence[FileEntry], config: RunConfig | None = None) -> list[PlannedMove]:
    """Plan the destination folder of each entry without touching the disk."""
    config = config or RunConfig()
    return [
        PlannedMove(name=e.name, extension=e.extension, target_folder=config.folder_for(e.extension))
        for e in entries
        if e.is_eligible(config)
    ]
