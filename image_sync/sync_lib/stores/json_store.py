"""Base class for JSON-backed stores with thread-safe read/write operations."""
from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


class BaseJSONStore:
    """Base class for JSON-backed stores with thread-safe operations.

    Provides:
    - Thread-safe file I/O with atomic writes
    - Versioning and timestamp tracking
    - Automatic parent directory creation

    Subclasses should:
    - Define VERSION as a class variable
    - Override _init_data() to provide initial data structure
    - Override _load_payload() to validate and merge loaded data
    """

    VERSION = 1

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.lock = threading.Lock()
        self._data: Dict[str, Any] = self._init_data()
        self._load()

    def _init_data(self) -> Dict[str, Any]:
        return {
            "version": self.VERSION,
            "updated_at": int(time.time()),
        }

    def _load(self) -> None:
        """Load data from the JSON file if it exists.

        A missing file keeps the default data. A corrupt file raises
        ``ValueError`` instead of being reset.
        """
        if not self.path.exists():
            return
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Corrupt store file {self.path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ValueError(f"Store file {self.path} must contain a JSON object")

        version = payload.get("version")
        if isinstance(version, int) and version > 0:
            self._data["version"] = version

        updated = payload.get("updated_at")
        if isinstance(updated, (int, float)):
            self._data["updated_at"] = int(updated)

        self._load_payload(payload)

    def _load_payload(self, payload: Dict[str, Any]) -> None:
        """Merge subclass-specific keys from a loaded payload."""

    def _touch_locked(self) -> None:
        """Update version and timestamp. Must be called with lock held."""
        self._data["version"] = self.VERSION
        self._data["updated_at"] = int(time.time())

    def _write_locked(self) -> None:
        """Write data to disk atomically. Must be called with lock held.

        Writes to a temporary sibling first, then replaces the original.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        temp_path.write_text(
            json.dumps(self._data, ensure_ascii=False, indent=2),
            encoding="utf-8"
        )
        temp_path.replace(self.path)
        logger.debug("Wrote %s", self.path)
