"""Working-directory preconditions.

The organizer refuses to run inside operating-system directories. These
checks run before any file is touched.
"""

from __future__ import annotations

from pathlib import Path, PurePath


class PreconditionError(Exception):
    """Raised when a call cannot start; nothing has been processed."""


class ForbiddenPathError(PreconditionError):
    """Raised when the working directory overlaps a protected system path."""


class InvalidWorkingDirectoryError(PreconditionError):
    """Raised when the working directory is missing or not a directory."""


class EmptyBatchError(PreconditionError):
    """Raised when an organize call is given no files."""


FORBIDDEN_PATHS: tuple[str, ...] = (
    "C:\\Windows",
    "C:\\Program Files",
    "C:\\Program Files (x86)",
    "C:\\System32",
    "/bin",
    "/boot",
    "/dev",
    "/etc",
    "/lib",
    "/proc",
    "/root",
    "/sbin",
    "/sys",
    "/usr",
    "/var",
)


def _protected_paths() -> list[PurePath]:
    """Deny-list entries that are absolute on the running platform."""
    return [p for p in (Path(raw) for raw in FORBIDDEN_PATHS) if p.is_absolute()]


def _overlaps(path: PurePath, protected: PurePath) -> bool:
    parts = [p.lower() for p in path.parts] if path.drive else list(path.parts)
    guarded = [p.lower() for p in protected.parts] if protected.drive else list(protected.parts)
    shorter = min(len(parts), len(guarded))
    return parts[:shorter] == guarded[:shorter]


def is_forbidden_path(path: Path) -> bool:
    """Check whether path is, lies inside, or contains a protected path.

    Comparison is by path components, so /binaries is not mistaken for /bin.
    """
    resolved = path.expanduser().resolve()
    return any(_overlaps(resolved, protected) for protected in _protected_paths())


def validate_working_directory(path: Path) -> Path:
    """Validate a caller-supplied working directory.

    Args:
        path: Directory the caller wants organized.

    Returns:
        The resolved absolute path.

    Raises:
        ForbiddenPathError: If the path overlaps a protected system path.
        InvalidWorkingDirectoryError: If the path is not an existing directory.
    """
    if is_forbidden_path(path):
        raise ForbiddenPathError(f"Operation not allowed on protected system folder: {path}")

    resolved = path.expanduser().resolve()
    if not resolved.is_dir():
        raise InvalidWorkingDirectoryError(f"Not a directory: {path}")
    return resolved
