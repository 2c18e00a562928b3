"""Services package."""

from dreamspend.services.calendar import CalendarService
from dreamspend.services.fx import ConversionResult
from dreamspend.services.language import LanguageSwitchResult
from dreamspend.services.rates import LiveRateService, RateFetchError
from dreamspend.services.storage import (
    ConnectionError,
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    SnapshotStorageInterface,
    StorageError,
    create_snapshot_storage,
)

__all__ = [
    # Day arithmetic
    "CalendarService",
    # Currency
    "ConversionResult",
    "LanguageSwitchResult",
    # Live rates
    "LiveRateService",
    "RateFetchError",
    # Storage services
    "ConnectionError",
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    "SnapshotStorageInterface",
    "StorageError",
    "create_snapshot_storage",
]
