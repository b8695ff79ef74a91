"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

DEFAULT_SETTINGS: dict[str, Any] = {
    "grid": {"cell_width": 216, "min_columns": 2},
    "loupe": {"prefetch": True},
    "import": {"payload_filename": "import-payload.json"},
    "logging": {"dir": None, "level": "INFO", "console": False},
    "overlay": {"default": "minimal"},
}


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access."""

    def __init__(self, settings_path: str | Path | None = None) -> None:
        if settings_path is None:
            self._path = None
            self._data: Any = DEFAULT_SETTINGS
            return
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            self._data = json.load(f)

    @classmethod
    def defaults(cls) -> JsonSettings:
        """Settings backed by the built-in defaults only."""
        return cls(None)

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node
