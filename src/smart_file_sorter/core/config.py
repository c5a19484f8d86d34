"""Per-run configuration for the batch organizer."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

NO_EXTENSION = "others"

# Extension aliases folded into a single destination folder
EXTENSION_ALIASES: dict[str, str] = {
    "jpg": "jpeg",
}


def normalize_extension(ext: str) -> str:
    """Normalize a raw extension string.

    Lowercases, trims, strips a leading dot and applies EXTENSION_ALIASES.
    An empty extension becomes NO_EXTENSION.

    Examples:
        >>> normalize_extension(".JPG")
        'jpeg'
        >>> normalize_extension("")
        'others'
    """
    ext = ext.strip().lower().lstrip(".")
    if not ext:
        return NO_EXTENSION
    return EXTENSION_ALIASES.get(ext, ext)


@dataclass(frozen=True)
class RunConfig:
    """Immutable configuration for one organize call.

    Attributes:
        exclude_ext: Normalized extensions that are never organized.
        custom_folders: Normalized extension -> destination folder name.
        copy_instead: Copy files instead of moving them.
    """

    exclude_ext: frozenset[str] = frozenset()
    custom_folders: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    copy_instead: bool = False

    @classmethod
    def create(
        cls,
        *,
        exclude_ext: Iterable[str] = (),
        custom_folders: Mapping[str, str] | None = None,
        copy_instead: bool = False,
    ) -> RunConfig:
        """Build a RunConfig from caller-supplied values, normalizing them.

        Blank extensions and blank folder names are dropped.
        """
        excluded = frozenset(normalize_extension(ext) for ext in exclude_ext if ext.strip())
        folders: dict[str, str] = {}
        for ext, folder in (custom_folders or {}).items():
            if not ext.strip() or not folder.strip():
                continue
            folders[normalize_extension(ext)] = folder.strip()

        return cls(
            exclude_ext=excluded,
            custom_folders=MappingProxyType(folders),
            copy_instead=bool(copy_instead),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunConfig:
        """Build a RunConfig from a JSON-style dict.

        Accepts both the camelCase keys used by form payloads
        (excludeExt, customFolders, copyInstead) and snake_case keys.
        """
        exclude = data.get("excludeExt", data.get("exclude_ext", []))
        if isinstance(exclude, str):
            exclude = exclude.split(",")
        return cls.create(
            exclude_ext=exclude,
            custom_folders=data.get("customFolders", data.get("custom_folders", {})),
            copy_instead=data.get("copyInstead", data.get("copy_instead", False)),
        )

    def folder_for(self, extension: str) -> str:
        """Return the destination folder name for a normalized extension."""
        return self.custom_folders.get(extension, extension)

    def to_dict(self) -> dict[str, Any]:
        return {
            "excludeExt": sorted(self.exclude_ext),
            "customFolders": dict(self.custom_folders),
            "copyInstead": self.copy_instead,
        }


def load_run_config(path: Path) -> RunConfig:
    """Load a RunConfig from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a JSON object.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Run config must be a JSON object: {path}")
    return RunConfig.from_dict(data)
