"""Batch organizer: dedupe, classify and move/copy one batch of files.

Entries are processed strictly in batch order because duplicate detection
depends on the digests of earlier entries. Each entry ends in exactly one
outcome (moved, copied, deleted as duplicate, or skipped on error) with one
log line. Per-file failures never abort the batch.
"""

from __future__ import annotations

import logging
import stat
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import TYPE_CHECKING

from smart_file_sorter.core.file_ops import (
    FileOperationError,
    StructuralError,
    safe_copy,
    safe_move,
)
from smart_file_sorter.core.hashing import DEFAULT_CHUNK_SIZE, compute_digest, compute_digests
from smart_file_sorter.core.safety import EmptyBatchError
from smart_file_sorter.core.scanner import FileEntry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from smart_file_sorter.core.config import RunConfig
    from smart_file_sorter.core.file_ops import UndoStack
    from smart_file_sorter.core.session import LogSink

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Counts for a single organize call (not cumulative).

    Attributes:
        files_moved: Files moved into a destination folder.
        files_copied: Files copied into a destination folder.
        duplicates_deleted: Files deleted as byte-identical duplicates.
        total_bytes_processed: Sum of sizes of moved and copied files.
        errors: Files skipped because of a per-file error.
    """

    files_moved: int = 0
    files_copied: int = 0
    duplicates_deleted: int = 0
    total_bytes_processed: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, int]:
        """Render the summary with the names used by form/JSON callers."""
        return {
            "filesMovedCount": self.files_moved,
            "filesCopiedCount": self.files_copied,
            "duplicatesDeletedCount": self.duplicates_deleted,
            "totalBytesProcessed": self.total_bytes_processed,
            "errorCount": self.errors,
        }

    def merge(self, other: RunSummary) -> RunSummary:
        """Return the sum of two summaries, for callers aggregating batches."""
        return RunSummary(
            files_moved=self.files_moved + other.files_moved,
            files_copied=self.files_copied + other.files_copied,
            duplicates_deleted=self.duplicates_deleted + other.duplicates_deleted,
            total_bytes_processed=self.total_bytes_processed + other.total_bytes_processed,
            errors=self.errors + other.errors,
        )


def _resolve_inside(root: Path, relative: str) -> Path:
    """Join relative onto root, refusing anything that escapes it."""
    if "\x00" in relative:
        raise StructuralError(f"Invalid path: {relative!r}")
    rel = PurePath(relative)
    if rel.anchor or not rel.parts or ".." in rel.parts:
        raise StructuralError(f"Path escapes working directory: {relative!r}")
    return root.joinpath(rel)


def _entry_path(root: Path, name: str) -> Path:
    """Path of a file directly inside root; names with folder segments are refused."""
    path = _resolve_inside(root, name)
    if len(PurePath(name).parts) != 1:
        raise StructuralError(f"Not a file name in the working directory: {name!r}")
    return path


def ensure_folder(root: Path, folder_name: str) -> tuple[Path, bool]:
    """Create a destination folder under root if needed.

    Args:
        root: Resolved working directory.
        folder_name: Folder name, possibly with intermediate segments.

    Returns:
        Tuple of (folder_path, created).

    Raises:
        StructuralError: If the folder escapes root, a non-directory occupies
            its path, or it cannot be created.
    """
    folder = _resolve_inside(root, folder_name)
    try:
        folder.mkdir(parents=True)
        return folder, True
    except FileExistsError:
        if folder.is_dir():
            return folder, False
        raise StructuralError(f"Cannot create folder {folder_name}: a file is in the way") from None
    except OSError as e:
        raise StructuralError(f"Cannot create folder {folder_name}: {e}") from e


def organize_batch(
    working_dir: Path,
    batch: Sequence[FileEntry | str],
    config: RunConfig,
    log: LogSink,
    undo_stack: UndoStack,
    *,
    digest_index: dict[str, Path] | None = None,
    created_folders: set[Path] | None = None,
    hash_workers: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> RunSummary:
    """Organize one batch of files inside working_dir.

    Args:
        working_dir: Directory holding the files; destination folders are
            created directly inside it.
        batch: Entries (or bare file names) in processing order.
        config: Run configuration, fixed for the whole call.
        log: Session log; one line is appended per outcome.
        undo_stack: Session undo stack; one record is pushed per move.
        digest_index: Digest index to share across batches. A fresh index is
            used for this call when None.
        created_folders: Destination folders created by this call are added
            to this set, when given.
        hash_workers: Hash the batch up front with this many threads.
        chunk_size: Bytes read per chunk while hashing.

    Returns:
        RunSummary for this call only.

    Raises:
        EmptyBatchError: If batch is empty.
    """
    if not batch:
        raise EmptyBatchError("No files provided to organize.")

    root = working_dir.resolve()
    seen: dict[str, Path] = {} if digest_index is None else digest_index
    summary = RunSummary()

    entries: list[FileEntry] = []
    for item in batch:
        entry = FileEntry.from_name(item) if isinstance(item, str) else item
        if not entry.is_eligible(config):
            log.append(f"Skipped excluded file: {entry.name}")
            continue
        entries.append(entry)

    precomputed: dict[Path, str] = {}
    if hash_workers > 1 and entries:
        paths: list[Path] = []
        for entry in entries:
            try:
                path = _entry_path(root, entry.name)
            except StructuralError:
                continue
            if not path.is_symlink():
                paths.append(path)
        precomputed, _ = compute_digests(paths, chunk_size=chunk_size, max_workers=hash_workers)

    for entry in entries:
        try:
            _process_entry(
                root, entry, config, log, undo_stack, seen, precomputed, summary, chunk_size, created_folders
            )
        except FileOperationError as e:
            log.error(f"{entry.name}: {e}")
            summary.errors += 1

    logger.debug(f"Batch done in {root}: {summary}")
    return summary


def _process_entry(
    root: Path,
    entry: FileEntry,
    config: RunConfig,
    log: LogSink,
    undo_stack: UndoStack,
    seen: dict[str, Path],
    precomputed: dict[Path, str],
    summary: RunSummary,
    chunk_size: int,
    created_folders: set[Path] | None,
) -> None:
    """Take one entry to its terminal outcome.

    Raises:
        FileOperationError: On any per-file failure; nothing is counted then.
    """
    path = _entry_path(root, entry.name)

    try:
        st = path.lstat()
    except OSError as e:
        raise FileOperationError(f"Cannot stat file: {e}") from e
    if stat.S_ISLNK(st.st_mode):
        raise FileOperationError("Symbolic links are not organized")

    digest = precomputed.get(path) or compute_digest(path, chunk_size=chunk_size)

    if seen.get(digest) == path:
        raise FileOperationError("File was already processed")

    if digest in seen:
        try:
            path.unlink()
        except OSError as e:
            raise FileOperationError(f"Cannot delete duplicate: {e}") from e
        log.append(f"Deleted duplicate: {entry.name} (same content as {seen[digest].name})")
        summary.duplicates_deleted += 1
        return

    seen[digest] = path

    folder_name = config.folder_for(entry.extension)
    folder, created = ensure_folder(root, folder_name)
    if created:
        log.append(f"Created folder: {folder_name}")
        if created_folders is not None:
            created_folders.add(folder)

    destination = folder / entry.name
    if config.copy_instead:
        safe_copy(path, destination)
        log.append(f"Copied: {entry.name} -> {folder_name}/{entry.name}")
        summary.files_copied += 1
    else:
        safe_move(path, destination, undo_stack)
        log.append(f"Moved: {entry.name} -> {folder_name}/{entry.name}")
        summary.files_moved += 1

    summary.total_bytes_processed += st.st_size
