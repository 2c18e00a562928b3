"""Streak rules."""

from typing import Iterable

from dreamspend.models.game import DayEntry, DayStatus


def next_streak(current: int, filled_today: bool) -> int:
    """Streak after a save. Never decrements; resets happen in should_reset."""
    return current + 1 if filled_today else current


def should_reset(days: Iterable[DayEntry]) -> bool:
    """
    True iff the two most recent days (by day_index) are both Missed.

    Only the trailing pair is examined, however many days were
    backfilled in one reconciliation pass.
    """
    tail = sorted(days, key=lambda day: day.day_index)[-2:]
    if len(tail) < 2:
        return False
    return all(day.status == DayStatus.MISSED for day in tail)
