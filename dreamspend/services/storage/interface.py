"""
Abstract Snapshot Storage Interface

DESIGN DECISION: The engine persists its WHOLE state as one GameSnapshot
through this interface. This allows us to:
1. Keep the engine free of I/O
2. Use in-memory storage for testing
3. Swap the JSON file for Google Sheets without touching game rules

The contract: load one snapshot, save one snapshot.
"""

from abc import ABC, abstractmethod
from typing import Optional

from dreamspend.models.game import GameSnapshot


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for snapshot persistence.

    Implementations are synchronous. The engine treats saves as
    best-effort: any exception from save() is logged and ignored.
    """

    @abstractmethod
    def load(self) -> Optional[GameSnapshot]:
        """
        Load the last saved snapshot.

        Returns:
            The snapshot, or None if nothing is stored or the stored
            data cannot be decoded
        """
        pass

    @abstractmethod
    def save(self, snapshot: GameSnapshot) -> None:
        """
        Replace the stored snapshot.

        Args:
            snapshot: Full engine state

        Raises:
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
