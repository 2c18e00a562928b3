"""Shared fixtures: a controllable clock and an engine on in-memory storage."""

from datetime import datetime, timedelta

import pytest

from dreamspend.engine import ProgressionEngine
from dreamspend.services.calendar import CalendarService
from dreamspend.services.storage import InMemorySnapshotStorage


class FakeClock:
    """Naive local time that only moves when told to."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, days: int = 0, hours: int = 0) -> datetime:
        self.current = self.current + timedelta(days=days, hours=hours)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 1, 12, 0))


@pytest.fixture
def storage() -> InMemorySnapshotStorage:
    return InMemorySnapshotStorage()


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
def engine(storage, clock, events) -> ProgressionEngine:
    engine = ProgressionEngine(
        storage=storage,
        calendar=CalendarService(),
        clock=clock,
        default_language="en",
    )
    engine.subscribe(events.append)
    return engine
