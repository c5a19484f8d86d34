"""Tests for core/file_ops.py — move/copy primitives and the undo stack."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from smart_file_sorter.core.file_ops import (
    DestinationExistsError,
    MoveRecord,
    SourceNotFoundError,
    UndoError,
    UndoStack,
    get_default_history_path,
    safe_copy,
    safe_move,
    undo_moves,
    undo_record,
)
from smart_file_sorter.core.session import LogSink


class TestMoveRecord:
    """Tests for MoveRecord dataclass."""

    def test_create_sets_timestamp(self, tmp_path: Path) -> None:
        """MoveRecord.create should set current timestamp."""
        src = tmp_path / "src.txt"
        dst = tmp_path / "dst.txt"
        record = MoveRecord.create(src, dst)

        assert record.src == str(src.resolve())
        assert record.dst == str(dst.resolve())
        assert record.operation_type == "move"
        assert record.timestamp

    def test_immutable(self, tmp_path: Path) -> None:
        """MoveRecord should be immutable (frozen dataclass)."""
        record = MoveRecord.create(tmp_path / "src.txt", tmp_path / "dst.txt")

        with pytest.raises(AttributeError):
            record.src = "new_path"  # type: ignore[misc]


class TestUndoStack:
    """Tests for UndoStack class."""

    def test_in_memory_stack(self, tmp_path: Path) -> None:
        """A stack without history file should work and write nothing."""
        stack = UndoStack()
        stack.push(MoveRecord.create(tmp_path / "a.txt", tmp_path / "b.txt"))

        assert len(stack) == 1
        assert list(tmp_path.iterdir()) == []

    def test_empty_stack(self, tmp_path: Path) -> None:
        """New stack should be empty."""
        stack = UndoStack(tmp_path / "history.json")

        assert stack.is_empty()
        assert len(stack) == 0
        assert list(stack) == []

    def test_push_keeps_order(self, tmp_path: Path) -> None:
        """Records should iterate oldest first."""
        stack = UndoStack(tmp_path / "history.json")

        first = MoveRecord.create(tmp_path / "a.txt", tmp_path / "b.txt")
        second = MoveRecord.create(tmp_path / "c.txt", tmp_path / "d.txt")
        stack.push(first)
        stack.push(second)

        assert len(stack) == 2
        assert list(stack) == [first, second]
        assert not stack.is_empty()

    def test_persistence(self, tmp_path: Path) -> None:
        """Stack should persist to JSON and reload correctly."""
        history_file = tmp_path / "history.json"
        stack1 = UndoStack(history_file)

        record1 = MoveRecord.create(tmp_path / "a.txt", tmp_path / "b.txt")
        record2 = MoveRecord.create(tmp_path / "c.txt", tmp_path / "d.txt")
        stack1.push(record1)
        stack1.push(record2)

        stack2 = UndoStack(history_file)

        assert list(stack2) == [record1, record2]

    def test_replace(self, tmp_path: Path) -> None:
        """replace should swap the whole content of the stack."""
        stack = UndoStack()
        stack.push(MoveRecord.create(tmp_path / "a.txt", tmp_path / "b.txt"))
        keep = MoveRecord.create(tmp_path / "c.txt", tmp_path / "d.txt")

        stack.replace([keep])

        assert list(stack) == [keep]

    def test_clear(self, tmp_path: Path) -> None:
        """Clear should remove all records."""
        stack = UndoStack(tmp_path / "history.json")
        stack.push(MoveRecord.create(tmp_path / "a.txt", tmp_path / "b.txt"))
        stack.clear()

        assert stack.is_empty()
        assert UndoStack(tmp_path / "history.json").is_empty()

    def test_corrupted_json_file(self, tmp_path: Path) -> None:
        """Stack should handle corrupted JSON gracefully."""
        history_file = tmp_path / "history.json"
        history_file.write_text("not valid json", encoding="utf-8")

        assert UndoStack(history_file).is_empty()

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        """Stack should create parent directories when saving."""
        history_file = tmp_path / "deep" / "nested" / "history.json"
        stack = UndoStack(history_file)

        stack.push(MoveRecord.create(tmp_path / "a.txt", tmp_path / "b.txt"))

        assert history_file.exists()


class TestSafeMove:
    """Tests for safe_move function."""

    def test_successful_move(self, tmp_path: Path) -> None:
        """safe_move should move file and record it in the undo stack."""
        src = tmp_path / "source.txt"
        dst = tmp_path / "txt" / "source.txt"
        src.write_text("hello", encoding="utf-8")
        stack = UndoStack()

        record = safe_move(src, dst, stack)

        assert not src.exists()
        assert dst.read_text(encoding="utf-8") == "hello"
        assert list(stack) == [record]
        assert record.src == str(src.resolve())

    def test_source_not_found_error(self, tmp_path: Path) -> None:
        """safe_move should raise SourceNotFoundError if source missing."""
        stack = UndoStack()

        with pytest.raises(SourceNotFoundError):
            safe_move(tmp_path / "nonexistent.txt", tmp_path / "dest.txt", stack)

        assert len(stack) == 0

    def test_destination_exists_error(self, tmp_path: Path) -> None:
        """safe_move should refuse to overwrite and leave the source alone."""
        src = tmp_path / "source.txt"
        dst = tmp_path / "dest.txt"
        src.write_text("hello", encoding="utf-8")
        dst.write_text("existing", encoding="utf-8")
        stack = UndoStack()

        with pytest.raises(DestinationExistsError):
            safe_move(src, dst, stack)

        assert src.exists()
        assert dst.read_text(encoding="utf-8") == "existing"
        assert len(stack) == 0

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_moves_link_not_target(self, tmp_path: Path) -> None:
        """safe_move should relocate a symlink itself, never the file it points to."""
        outside = tmp_path / "outside"
        outside.mkdir()
        target = outside / "secret.txt"
        target.write_text("keep me", encoding="utf-8")
        work = tmp_path / "work"
        work.mkdir()
        link = work / "link.txt"
        link.symlink_to(target)
        stack = UndoStack()

        record = safe_move(link, work / "txt" / "link.txt", stack)

        assert target.read_text(encoding="utf-8") == "keep me"
        assert (work / "txt" / "link.txt").is_symlink()
        assert not link.is_symlink()
        assert record.src.startswith(str(work.resolve()))


class TestSafeCopy:
    """Tests for safe_copy function."""

    def test_copy_keeps_source(self, tmp_path: Path) -> None:
        """safe_copy should leave the source in place."""
        src = tmp_path / "source.txt"
        dst = tmp_path / "txt" / "source.txt"
        src.write_text("hello", encoding="utf-8")

        safe_copy(src, dst)

        assert src.read_text(encoding="utf-8") == "hello"
        assert dst.read_text(encoding="utf-8") == "hello"

    def test_copy_overwrites(self, tmp_path: Path) -> None:
        """An existing destination is overwritten."""
        src = tmp_path / "source.txt"
        dst = tmp_path / "dest.txt"
        src.write_text("new", encoding="utf-8")
        dst.write_text("old", encoding="utf-8")

        safe_copy(src, dst)

        assert dst.read_text(encoding="utf-8") == "new"

    def test_copy_missing_source(self, tmp_path: Path) -> None:
        """safe_copy should raise SourceNotFoundError if source missing."""
        with pytest.raises(SourceNotFoundError):
            safe_copy(tmp_path / "missing.txt", tmp_path / "dest.txt")


class TestUndoRecord:
    """Tests for undo_record function."""

    def test_moved_file_missing(self, tmp_path: Path) -> None:
        """A vanished file should raise SourceNotFoundError."""
        src = tmp_path / "source.txt"
        src.write_text("hello", encoding="utf-8")
        record = safe_move(src, tmp_path / "dest.txt", UndoStack())
        (tmp_path / "dest.txt").unlink()

        with pytest.raises(SourceNotFoundError, match="not found"):
            undo_record(record)

    def test_original_location_occupied(self, tmp_path: Path) -> None:
        """An occupied original location should raise UndoError."""
        src = tmp_path / "source.txt"
        src.write_text("hello", encoding="utf-8")
        record = safe_move(src, tmp_path / "dest.txt", UndoStack())
        src.write_text("new file", encoding="utf-8")

        with pytest.raises(UndoError, match="occupied"):
            undo_record(record)


class TestUndoMoves:
    """Tests for undo_moves function."""

    def test_undo_all_successful(self, tmp_path: Path) -> None:
        """undo_moves should restore every file and empty the stack."""
        src1 = tmp_path / "source1.txt"
        src2 = tmp_path / "source2.txt"
        src1.write_text("file1", encoding="utf-8")
        src2.write_text("file2", encoding="utf-8")
        stack = UndoStack()
        log = LogSink()

        safe_move(src1, tmp_path / "txt" / "source1.txt", stack)
        safe_move(src2, tmp_path / "txt" / "source2.txt", stack)

        undone = undo_moves(stack, log)

        assert [Path(r.src).name for r in undone] == ["source2.txt", "source1.txt"]
        assert src1.read_text(encoding="utf-8") == "file1"
        assert src2.read_text(encoding="utf-8") == "file2"
        assert not (tmp_path / "txt" / "source1.txt").exists()
        assert stack.is_empty()
        assert len(log) == 2

    def test_missing_file_is_skipped_silently(self, tmp_path: Path) -> None:
        """Records whose file was moved away are skipped without an error line."""
        src1 = tmp_path / "source1.txt"
        src2 = tmp_path / "source2.txt"
        src1.write_text("file1", encoding="utf-8")
        src2.write_text("file2", encoding="utf-8")
        stack = UndoStack()
        log = LogSink()

        safe_move(src1, tmp_path / "dest1.txt", stack)
        safe_move(src2, tmp_path / "dest2.txt", stack)
        (tmp_path / "dest1.txt").unlink()

        undone = undo_moves(stack, log)

        assert len(undone) == 1
        assert src2.exists()
        assert stack.is_empty()
        assert not any(line.startswith("Error") for line in log)

    def test_failed_record_clears_stack_by_default(self, tmp_path: Path) -> None:
        """A record that cannot be replayed is logged and the stack still cleared."""
        src = tmp_path / "source.txt"
        src.write_text("hello", encoding="utf-8")
        stack = UndoStack()
        log = LogSink()

        safe_move(src, tmp_path / "dest.txt", stack)
        src.write_text("blocker", encoding="utf-8")

        undone = undo_moves(stack, log)

        assert undone == []
        assert stack.is_empty()
        assert any(line.startswith("Error: Undo failed") for line in log)

    def test_keep_failed_retains_failed_records(self, tmp_path: Path) -> None:
        """keep_failed=True should keep only the records that failed."""
        ok = tmp_path / "ok.txt"
        blocked = tmp_path / "blocked.txt"
        ok.write_text("ok", encoding="utf-8")
        blocked.write_text("blocked", encoding="utf-8")
        stack = UndoStack()

        safe_move(ok, tmp_path / "dest_ok.txt", stack)
        failing = safe_move(blocked, tmp_path / "dest_blocked.txt", stack)
        blocked.write_text("blocker", encoding="utf-8")

        undo_moves(stack, LogSink(), keep_failed=True)

        assert ok.exists()
        assert list(stack) == [failing]

    def test_undo_empty_stack(self) -> None:
        """undo_moves should return empty list for empty stack."""
        assert undo_moves(UndoStack(), LogSink()) == []


class TestGetDefaultHistoryPath:
    """Tests for get_default_history_path function."""

    def test_returns_correct_path(self, tmp_path: Path) -> None:
        """Should return the hidden history file inside the working directory."""
        result = get_default_history_path(tmp_path)

        assert result == tmp_path / ".smart_file_sorter" / "undo_history.json"
