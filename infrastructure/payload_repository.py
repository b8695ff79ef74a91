"""JSON import-payload reader.

The metadata extractor / burst detector writes its result as a JSON document
(`{cameras, bursts, singles}`) into the imported folder. This repository
locates and loads that document; normalization happens in hydration.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger

from core.services.interfaces import ImportFailed

DEFAULT_PAYLOAD_FILENAME = "import-payload.json"
REQUIRED_KEYS = ("cameras", "bursts", "singles")


class JsonPayloadRepository:
    """Load an import payload from `<folder>/<payload_filename>`."""

    def __init__(self, payload_filename: str = DEFAULT_PAYLOAD_FILENAME) -> None:
        self._filename = payload_filename

    def payload_path(self, folder: str) -> Path:
        """Return where the payload for `folder` is expected.

        A path pointing directly at a `.json` file is used as-is.
        """
        path = Path(folder)
        if path.suffix.lower() == ".json":
            return path
        return path / self._filename

    def load(self, folder: str) -> dict[str, Any]:
        """Read and minimally validate the payload for `folder`.

        Raises:
            ImportFailed: The file is missing, unreadable, not JSON, or lacks
                one of the top-level lists.
        """
        path = self.payload_path(folder)
        if not path.is_file():
            raise ImportFailed(f"No import payload found at {path}")
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError) as ex:
            raise ImportFailed(f"Cannot read {path}: {ex}") from ex
        except json.JSONDecodeError as ex:
            raise ImportFailed(f"Invalid JSON in {path}: {ex}") from ex

        if not isinstance(data, dict):
            raise ImportFailed(f"Import payload in {path} is not an object")
        missing = [k for k in REQUIRED_KEYS if k not in data]
        if missing:
            raise ImportFailed(f"Import payload missing keys: {missing}")

        logger.info(
            "Loaded payload {} | cameras={} bursts={} singles={}",
            path,
            len(data.get("cameras") or []),
            len(data.get("bursts") or []),
            len(data.get("singles") or []),
        )
        return data
