"""Content hashing for exact-duplicate detection.

Files are read in fixed-size chunks and folded into a SHA-256 digest, so
large files never need to be resident in memory. The digest depends only on
byte content: name, timestamps and permissions play no part.
"""

from __future__ import annotations

import hashlib
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

from smart_file_sorter.core.file_ops import FileOperationError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class HashError(FileOperationError):
    """Raised when a file cannot be read for hashing."""


def compute_digest(path: Path, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Compute the SHA-256 digest of a file's content.

    Args:
        path: Path to the file.
        chunk_size: Number of bytes read per chunk.

    Returns:
        Hexadecimal digest string.

    Raises:
        HashError: If the file is missing, unreadable, or a read fails midway.
    """
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                digest.update(chunk)
    except OSError as e:
        raise HashError(f"Failed to hash {path}: {e}") from e

    return digest.hexdigest()


def compute_digests(
    paths: Sequence[Path],
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_workers: int = 1,
) -> tuple[dict[Path, str], list[tuple[Path, str]]]:
    """Compute digests for many files.

    With max_workers > 1 the files are hashed in a thread pool; results are
    still keyed by path so callers can consume them in their own order.

    Args:
        paths: Files to hash.
        chunk_size: Number of bytes read per chunk.
        max_workers: Number of hashing threads.

    Returns:
        Tuple of (digests, failed_items).
        failed_items is list of (path, error_message).
    """
    digests: dict[Path, str] = {}
    failed: list[tuple[Path, str]] = []

    def _hash(path: Path) -> tuple[Path, str | None, str | None]:
        try:
            return path, compute_digest(path, chunk_size=chunk_size), None
        except HashError as e:
            return path, None, str(e)

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(_hash, paths))
    else:
        outcomes = (_hash(path) for path in paths)

    for path, digest, error in outcomes:
        if digest is None:
            logger.warning(error)
            failed.append((path, error or "Unknown error"))
        else:
            digests[path] = digest

    return digests, failed
