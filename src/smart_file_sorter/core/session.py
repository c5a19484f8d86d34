"""Session context: the log sink, undo stack and digest index of one user.

A session spans any number of organize calls. Callers must serialize calls
on the same session; nothing here takes a lock.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from smart_file_sorter.core.file_ops import UndoStack, undo_moves
from smart_file_sorter.core.hashing import DEFAULT_CHUNK_SIZE
from smart_file_sorter.core.organizer import organize_batch
from smart_file_sorter.core.reaper import reap_empty_folders

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from smart_file_sorter.core.config import RunConfig
    from smart_file_sorter.core.file_ops import MoveRecord
    from smart_file_sorter.core.organizer import RunSummary
    from smart_file_sorter.core.scanner import FileEntry

logger = logging.getLogger("smart_file_sorter")


class SessionClosedError(Exception):
    """Raised when a closed session is used."""


class LogSink:
    """Append-only sequence of human-readable event lines.

    Every line is also forwarded to the package logger.
    """

    def __init__(self) -> None:
        self._lines: list[str] = []

    def append(self, line: str) -> None:
        """Record an event."""
        self._lines.append(line)
        logger.info(line)

    def error(self, line: str) -> None:
        """Record a failure. The line is prefixed with 'Error: '."""
        self._lines.append(f"Error: {line}")
        logger.error(line)

    def lines(self) -> list[str]:
        """Return a copy of all lines, oldest first."""
        return list(self._lines)

    def export(self, path: Path) -> Path:
        """Write the log to a text file, one line per event.

        Returns:
            The path written.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(self._lines), encoding="utf-8")
        return path

    def _reset(self) -> None:
        self._lines.clear()

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._lines))


@dataclass
class Session:
    """Explicit session context passed into every organize/undo call.

    Attributes:
        session_id: Unique identifier of the session.
        log: Append-only event log.
        undo_stack: Moves made during the session, for undo.
        digest_index: Digest -> first path seen, shared by all batches when
            the session dedupes across batches; None otherwise.
        created_folders: Destination folders created during the session.
            Only these are candidates for reaping.
    """

    session_id: str
    log: LogSink
    undo_stack: UndoStack
    digest_index: dict[str, Path] | None = None
    created_folders: set[Path] = field(default_factory=set, init=False)
    closed: bool = field(default=False, init=False)

    @classmethod
    def create(
        cls,
        history_file: Path | None = None,
        *,
        dedupe_across_batches: bool = False,
    ) -> Session:
        """Start a new session.

        Args:
            history_file: Optional JSON file backing the undo stack.
            dedupe_across_batches: Share one digest index across all batches.
        """
        return cls(
            session_id=uuid.uuid4().hex,
            log=LogSink(),
            undo_stack=UndoStack(history_file),
            digest_index={} if dedupe_across_batches else None,
        )

    def _check_open(self) -> None:
        if self.closed:
            raise SessionClosedError(f"Session {self.session_id} is closed")

    def organize(
        self,
        working_dir: Path,
        batch: Sequence[FileEntry | str],
        config: RunConfig,
        *,
        hash_workers: int = 1,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> RunSummary:
        """Organize one batch within this session."""
        self._check_open()
        return organize_batch(
            working_dir,
            batch,
            config,
            self.log,
            self.undo_stack,
            digest_index=self.digest_index,
            created_folders=self.created_folders,
            hash_workers=hash_workers,
            chunk_size=chunk_size,
        )

    def reap(self, working_dir: Path) -> list[Path]:
        """Remove folders this session created under working_dir that are now empty."""
        self._check_open()
        removed = reap_empty_folders(working_dir, self.log, only=self.created_folders)
        self.created_folders = {folder for folder in self.created_folders if folder.is_dir()}
        return removed

    def undo(self, *, keep_failed: bool = False) -> list[MoveRecord]:
        """Undo every move made in this session."""
        self._check_open()
        return undo_moves(self.undo_stack, self.log, keep_failed=keep_failed)

    def export_log(self, path: Path) -> Path:
        """Write the session log to a text file."""
        return self.log.export(path)

    def reset(self) -> None:
        """Clear the log, the undo stack, the created folders and the digest index."""
        self._check_open()
        self.log._reset()
        self.undo_stack.clear()
        self.created_folders.clear()
        if self.digest_index is not None:
            self.digest_index.clear()

    def close(self) -> None:
        """Reset and close the session; further use raises SessionClosedError."""
        if self.closed:
            return
        self.reset()
        self.closed = True
