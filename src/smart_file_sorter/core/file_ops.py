"""File operations with undo capability.

Moves go through safe_move() so every relocation lands on the undo stack.
Copies go through safe_copy() and are never recorded, since the source
stays where it was.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from smart_file_sorter.core.session import LogSink

logger = logging.getLogger(__name__)


class FileOperationError(Exception):
    """Base exception for file operation errors."""


class SourceNotFoundError(FileOperationError):
    """Raised when source file does not exist."""


class DestinationExistsError(FileOperationError):
    """Raised when destination file already exists."""


class StructuralError(FileOperationError):
    """Raised when a destination folder cannot be created or used."""


class UndoError(FileOperationError):
    """Raised when undo operation fails."""


def _absolute(path: Path) -> Path:
    """Absolute path with the parent resolved; a symlink itself is not followed."""
    return path.parent.resolve() / path.name


@dataclass(frozen=True)
class MoveRecord:
    """Immutable record of a file move operation.

    Attributes:
        src: Original file path (before move).
        dst: Destination file path (after move).
        timestamp: When the operation occurred.
        operation_type: Type of operation (always 'move').
    """

    src: str
    dst: str
    timestamp: str
    operation_type: str = "move"

    @classmethod
    def create(cls, src: Path, dst: Path) -> MoveRecord:
        """Create a new MoveRecord with current timestamp.

        Args:
            src: Source file path.
            dst: Destination file path.

        Returns:
            A new MoveRecord instance.
        """
        return cls(
            src=str(_absolute(src)),
            dst=str(_absolute(dst)),
            timestamp=datetime.now().isoformat(),
            operation_type="move",
        )


class UndoStack:
    """Session-scoped stack of file moves that can be undone.

    Without a history file the stack lives in memory for the lifetime of the
    session. With one, it is saved to JSON after every change so a later
    process can undo the same run.

    Attributes:
        history_file: Path to the JSON file storing the history, or None.
    """

    def __init__(self, history_file: Path | None = None) -> None:
        """Initialize the undo stack.

        Args:
            history_file: Optional path to the JSON file for storing history.
        """
        self.history_file = history_file
        self._records: list[MoveRecord] = []
        self._load()

    def _load(self) -> None:
        """Load history from JSON file if it exists."""
        if self.history_file is not None and self.history_file.exists():
            try:
                data = json.loads(self.history_file.read_text(encoding="utf-8"))
                self._records = [MoveRecord(**record) for record in data]
            except (json.JSONDecodeError, TypeError, KeyError):
                logger.warning(f"Ignoring unreadable undo history: {self.history_file}")
                self._records = []

    def _save(self) -> None:
        """Save current history to JSON file."""
        if self.history_file is None:
            return
        self.history_file.parent.mkdir(parents=True, exist_ok=True)
        data = [asdict(record) for record in self._records]
        self.history_file.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    def push(self, record: MoveRecord) -> None:
        """Add a new record to the stack."""
        self._records.append(record)
        self._save()

    def replace(self, records: list[MoveRecord]) -> None:
        """Replace the whole stack with the given records (oldest first)."""
        self._records = list(records)
        self._save()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[MoveRecord]:
        """Iterate over records from oldest to newest."""
        return iter(self._records)

    def is_empty(self) -> bool:
        return len(self._records) == 0

    def clear(self) -> None:
        """Clear all records from the stack."""
        self._records.clear()
        self._save()


def safe_move(src: Path, dst: Path, undo_stack: UndoStack) -> MoveRecord:
    """Move a file from src to dst and record it for undo.

    Args:
        src: Source file path (must exist).
        dst: Destination file path (must NOT exist).
        undo_stack: Stack to record the operation for undo.

    Returns:
        The MoveRecord pushed onto the stack.

    Raises:
        SourceNotFoundError: If source file does not exist.
        DestinationExistsError: If destination file already exists.
        FileOperationError: If the move operation fails.
    """
    src = _absolute(src)
    dst = _absolute(dst)

    if not src.exists() and not src.is_symlink():
        raise SourceNotFoundError(f"Source file not found: {src}")

    if dst.exists() or dst.is_symlink():
        raise DestinationExistsError(f"Destination already exists: {dst}")

    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(src), str(dst))
    except OSError as e:
        raise FileOperationError(f"Failed to move {src} to {dst}: {e}") from e

    record = MoveRecord.create(src, dst)
    undo_stack.push(record)
    return record


def safe_copy(src: Path, dst: Path) -> None:
    """Copy a file from src to dst, keeping the source in place.

    An existing file at dst is overwritten (last write wins).

    Raises:
        SourceNotFoundError: If source file does not exist.
        FileOperationError: If the copy fails.
    """
    if not src.exists():
        raise SourceNotFoundError(f"Source file not found: {src}")

    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(str(src), str(dst))
    except OSError as e:
        raise FileOperationError(f"Failed to copy {src} to {dst}: {e}") from e


def undo_record(record: MoveRecord) -> None:
    """Move a single recorded file back from dst to src.

    Raises:
        SourceNotFoundError: If the moved file is no longer at dst.
        UndoError: If the original location is occupied or the move fails.
    """
    src = Path(record.src)
    dst = Path(record.dst)

    if not dst.exists():
        raise SourceNotFoundError(f"Cannot undo: moved file not found at {dst}")

    if src.exists():
        raise UndoError(f"Cannot undo: original location already occupied: {src}")

    try:
        src.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(dst), str(src))
    except OSError as e:
        raise UndoError(f"Failed to undo move: {e}") from e


def undo_moves(undo_stack: UndoStack, log: LogSink, *, keep_failed: bool = False) -> list[MoveRecord]:
    """Undo every recorded move, newest first.

    Records whose moved file has disappeared are skipped without complaint.
    Records that cannot be replayed are logged. The stack is cleared
    afterwards; with keep_failed=True the failed records are kept instead.

    Args:
        undo_stack: Stack containing the session's move history.
        log: Session log to append undo events to.
        keep_failed: Keep records that failed to replay for a later retry.

    Returns:
        List of MoveRecords that were undone.
    """
    undone: list[MoveRecord] = []
    failed: list[MoveRecord] = []

    for record in reversed(list(undo_stack)):
        try:
            undo_record(record)
        except SourceNotFoundError:
            logger.debug(f"Skipping undo of {record.dst}: file no longer there")
            continue
        except UndoError as e:
            log.error(f"Undo failed for {Path(record.dst).name}: {e}")
            failed.append(record)
            continue

        log.append(f"Undid: {Path(record.dst).name} moved back")
        undone.append(record)

    if keep_failed and failed:
        undo_stack.replace(list(reversed(failed)))
    else:
        undo_stack.clear()

    return undone


def get_default_history_path(base_folder: Path) -> Path:
    """Get the default path for the undo history file of a working directory."""
    return base_folder / ".smart_file_sorter" / "undo_history.json"
