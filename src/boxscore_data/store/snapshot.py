"""
JSON snapshot file for the game store.

The whole store is written as one document: encoded with msgspec to a
temporary file in the target directory, then moved over the previous snapshot
with os.replace so readers never see a partial file.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

import msgspec

logger = logging.getLogger(__name__)


class SnapshotFile:
    """Atomic read/write of the store snapshot."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> Optional[dict[str, Any]]:
        """
        Read the snapshot.

        Returns None when the file is missing or cannot be decoded; a corrupt
        snapshot is logged and ignored so the store starts empty.
        """
        if not self.path.exists():
            return None
        try:
            data = msgspec.json.decode(self.path.read_bytes())
        except (OSError, msgspec.DecodeError) as e:
            logger.error(f"Could not read snapshot {self.path}, starting empty: {e}")
            return None
        if not isinstance(data, dict):
            logger.error(f"Snapshot {self.path} is not a JSON object, starting empty")
            return None
        return data

    def save(self, payload: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        encoded = msgspec.json.encode(payload)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(encoded)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
