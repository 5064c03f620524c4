"""JSON file storage for portfolio positions."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class JsonFileStorage:
    """Keep the serialized portfolio in a single JSON file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load_positions(self) -> list[dict[str, Any]]:
        """Return stored records; a missing or unreadable file yields ``[]``."""
        if not self.path.exists():
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to load portfolio from %s: %s", self.path, e)
            return []

        if not isinstance(data, list):
            logger.warning("Portfolio file %s does not hold a list, ignoring", self.path)
            return []

        return [item for item in data if isinstance(item, dict)]

    def save_positions(self, records: list[dict[str, Any]]) -> None:
        """Write *records*, replacing the file atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
