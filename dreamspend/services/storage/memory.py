"""In-memory snapshot storage for tests and throwaway sessions."""

from typing import Optional

from dreamspend.models.game import GameSnapshot
from dreamspend.services.storage.interface import SnapshotStorageInterface


class InMemorySnapshotStorage(SnapshotStorageInterface):
    """Keeps a deep copy of the last saved snapshot."""

    def __init__(self, snapshot: Optional[GameSnapshot] = None):
        self._snapshot = snapshot.model_copy(deep=True) if snapshot else None
        self.save_count = 0

    @property
    def snapshot(self) -> Optional[GameSnapshot]:
        return self._snapshot

    def load(self) -> Optional[GameSnapshot]:
        if self._snapshot is None:
            return None
        return self._snapshot.model_copy(deep=True)

    def save(self, snapshot: GameSnapshot) -> None:
        self._snapshot = snapshot.model_copy(deep=True)
        self.save_count += 1
