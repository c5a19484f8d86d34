"""Core business logic for Smart File Sorter."""

from smart_file_sorter.core.config import (
    NO_EXTENSION,
    RunConfig,
    load_run_config,
    normalize_extension,
)
from smart_file_sorter.core.file_ops import (
    DestinationExistsError,
    FileOperationError,
    MoveRecord,
    SourceNotFoundError,
    StructuralError,
    UndoError,
    UndoStack,
    get_default_history_path,
    safe_copy,
    safe_move,
    undo_moves,
)
from smart_file_sorter.core.hashing import (
    HashError,
    compute_digest,
    compute_digests,
)
from smart_file_sorter.core.organizer import (
    RunSummary,
    organize_batch,
)
from smart_file_sorter.core.reaper import reap_empty_folders
from smart_file_sorter.core.safety import (
    FORBIDDEN_PATHS,
    EmptyBatchError,
    ForbiddenPathError,
    InvalidWorkingDirectoryError,
    PreconditionError,
    is_forbidden_path,
    validate_working_directory,
)
from smart_file_sorter.core.scanner import (
    ALWAYS_EXCLUDED,
    FileEntry,
    PlannedMove,
    iter_batches,
    list_entries,
    preview,
    select_batch,
)
from smart_file_sorter.core.session import (
    LogSink,
    Session,
    SessionClosedError,
)

__all__ = [
    # config
    "NO_EXTENSION",
    "RunConfig",
    "load_run_config",
    "normalize_extension",
    # file_ops
    "DestinationExistsError",
    "FileOperationError",
    "MoveRecord",
    "SourceNotFoundError",
    "StructuralError",
    "UndoError",
    "UndoStack",
    "get_default_history_path",
    "safe_copy",
    "safe_move",
    "undo_moves",
    # hashing
    "HashError",
    "compute_digest",
    "compute_digests",
    # organizer
    "RunSummary",
    "organize_batch",
    # reaper
    "reap_empty_folders",
    # safety
    "FORBIDDEN_PATHS",
    "EmptyBatchError",
    "ForbiddenPathError",
    "InvalidWorkingDirectoryError",
    "PreconditionError",
    "is_forbidden_path",
    "validate_working_directory",
    # scanner
    "ALWAYS_EXCLUDED",
    "FileEntry",
    "PlannedMove",
    "iter_batches",
    "list_entries",
    "preview",
    "select_batch",
    # session
    "LogSink",
    "Session",
    "SessionClosedError",
]
