"""User settings: JSON-backed defaults for the organizer and the CLI.

Usage:
    from smart_file_sorter.core.settings import Settings

    settings = Settings()
    batch_size = settings.get("batch_size")
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


_DEFAULT_SETTINGS: dict[str, Any] = {
    # Files handed to one organize call; 0 means the whole listing
    "batch_size": 50,
    # Hashing
    "hash_chunk_size": 64 * 1024,
    "hash_workers": 1,
    # Session behaviour
    "dedupe_across_batches": False,
    "keep_failed_undo": False,
}

_SETTINGS_DIR = Path.home() / ".smart-file-sorter"
_SETTINGS_FILE = _SETTINGS_DIR / "settings.json"


class Settings:
    """Manages user settings with JSON persistence."""

    def __init__(self, settings_file: Path = _SETTINGS_FILE) -> None:
        self._settings_file = settings_file
        self._values: dict[str, Any] = dict(_DEFAULT_SETTINGS)
        self._load()

    def _load(self) -> None:
        """Load settings from disk, merging with defaults."""
        if self._settings_file.exists():
            try:
                with open(self._settings_file, encoding="utf-8") as f:
                    saved: dict[str, Any] = json.load(f)
                # Saved values override defaults only for known keys of the same type
                for key, value in saved.items():
                    if key in self._values and type(value) is type(_DEFAULT_SETTINGS[key]):
                        self._values[key] = value
            except (json.JSONDecodeError, OSError, AttributeError):
                pass  # Use defaults if file is corrupted

    def _save(self) -> None:
        """Persist current settings to disk."""
        self._settings_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self._settings_file, "w", encoding="utf-8") as f:
            json.dump(self._values, f, indent=2)

    def get(self, key: str) -> Any:
        """Return a setting value."""
        return self._values[key]

    def set(self, key: str, value: Any) -> None:
        """Change and persist a setting.

        Raises:
            KeyError: If key is not a known setting.
            TypeError: If value has the wrong type for key.
        """
        if key not in _DEFAULT_SETTINGS:
            raise KeyError(f"Unknown setting: {key}")
        if type(value) is not type(_DEFAULT_SETTINGS[key]):
            raise TypeError(f"Setting {key} expects {type(_DEFAULT_SETTINGS[key]).__name__}")
        self._values[key] = value
        self._save()

    def all_settings(self) -> dict[str, Any]:
        """Return a copy of all settings."""
        return dict(self._values)

    def reset(self) -> None:
        """Reset all settings to defaults."""
        self._values = dict(_DEFAULT_SETTINGS)
        self._save()
