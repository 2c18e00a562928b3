"""
Storage Services Package

Provides the snapshot storage interface and its implementations.
The JSON file is the default backend; Google Sheets is optional.
"""

from typing import Optional

from dreamspend.config import Settings, get_settings
from dreamspend.services.storage.interface import (
    ConnectionError,
    SnapshotStorageInterface,
    StorageError,
)
from dreamspend.services.storage.json_file import JsonFileSnapshotStorage
from dreamspend.services.storage.memory import InMemorySnapshotStorage


def create_snapshot_storage(settings: Optional[Settings] = None) -> SnapshotStorageInterface:
    """Build the backend selected by DREAMSPEND_STORAGE_BACKEND."""
    settings = settings or get_settings()
    storage_settings = settings.storage

    if storage_settings.backend == "memory":
        return InMemorySnapshotStorage()
    if storage_settings.backend == "google_sheets":
        # Imported lazily: gspread/google-auth are only needed for this backend
        from dreamspend.services.storage.google_sheets import (
            GoogleSheetsClient,
            GoogleSheetsSnapshotStorage,
        )
        return GoogleSheetsSnapshotStorage(GoogleSheetsClient(settings.google_sheets))
    return JsonFileSnapshotStorage(storage_settings.json_path)


__all__ = [
    # Interfaces
    "SnapshotStorageInterface",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Implementations
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    "create_snapshot_storage",
]
