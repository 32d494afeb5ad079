"""Flat key/value settings document.

No schema is enforced; values are whatever JSON the UI stores.  A missing or
corrupt file reads as empty.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .utils import load_json, print_warning, write_json_atomic


class SettingsStore:
    """JSON-backed settings with immediate, atomic persistence on ``set``."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def get_all(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            data = load_json(self.path)
        except (OSError, json.JSONDecodeError) as exc:
            print_warning(f"Settings file {self.path} is unreadable ({exc}); using defaults")
            return {}
        data.pop("_root", None)
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self.get_all().get(key, default)

    def set(self, key: str, value: Any) -> dict[str, Any]:
        """Store *value* under *key* and return the full settings mapping."""
        settings = self.get_all()
        settings[key] = value
        write_json_atomic(settings, self.path)
        return settings
