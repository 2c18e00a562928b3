"""
JSON File Storage Implementation

The snapshot is one JSON document on local disk.

Writes go to a sibling temp file which then replaces the target, so a
crash mid-write leaves the previous snapshot in place.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from dreamspend.models.game import GameSnapshot
from dreamspend.services.storage.interface import (
    SnapshotStorageInterface,
    StorageError,
)


class JsonFileSnapshotStorage(SnapshotStorageInterface):
    """Snapshot storage backed by a single JSON file."""

    def __init__(self, path: Path):
        self._path = Path(path)
        self._logger = structlog.get_logger("dreamspend.storage")

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[GameSnapshot]:
        try:
            payload = self._path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            self._logger.warning("snapshot_read_failed", path=str(self._path), error=str(e))
            return None

        try:
            return GameSnapshot.from_json(payload)
        except ValidationError as e:
            self._logger.warning(
                "snapshot_decode_failed",
                path=str(self._path),
                error_count=e.error_count(),
            )
            return None

    def save(self, snapshot: GameSnapshot) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(snapshot.to_json())
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write snapshot to {self._path}: {e}")
