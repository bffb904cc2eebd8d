"""
SnapshotStore — JSON file persistence for the session blob.

The blob is opaque to this module: whatever ``ReportSession.snapshot()``
produced is written, and read back for ``ReportSession.restore()``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Reads and writes one JSON snapshot on disk."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def save(self, blob: Dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(blob, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self._path)
        logger.info(f"[Snapshot] Saved to {self._path}")

    def load(self) -> Optional[Dict[str, Any]]:
        """Return the stored blob, or ``None`` if missing or unreadable."""
        if not self._path.exists():
            return None
        try:
            blob = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error(f"[Snapshot] Could not read {self._path}: {exc}")
            return None
        if not isinstance(blob, dict):
            logger.error(f"[Snapshot] Ignoring {self._path}: not a JSON object")
            return None
        return blob

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
