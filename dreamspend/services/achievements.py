"""
Achievement evaluation.

Pure functions over the catalog in AchievementKind.

CRITICAL: Evaluation is one-way. An achievement that has an earned_at
timestamp is copied through untouched, whatever the current inputs are.
"""

from datetime import datetime
from typing import Iterable

from dreamspend.models.game import Achievement, AchievementKind, DayEntry


def bootstrap() -> list[Achievement]:
    """One unearned achievement per catalog kind, in catalog order."""
    return [Achievement(kind=kind) for kind in AchievementKind]


def _condition_met(
    kind: AchievementKind,
    streak: int,
    day: DayEntry,
    reached_maximum: bool,
) -> bool:
    required = kind.required_streak
    if required is not None:
        return streak >= required
    if kind == AchievementKind.PERFECT_FILL:
        return day.is_perfect_fill
    if kind == AchievementKind.REACHED_MAXIMUM:
        return reached_maximum
    return False


def evaluate(
    achievements: Iterable[Achievement],
    streak: int,
    day: DayEntry,
    reached_maximum: bool,
    now: datetime,
) -> list[Achievement]:
    """
    Award every unearned achievement whose condition holds.

    Args:
        achievements: Current achievement list (not mutated)
        streak: Streak after the save being evaluated
        day: The day that was just saved
        reached_maximum: The day's allowance is at or above the maximum
        now: Timestamp to stamp on newly earned achievements

    Returns:
        New list in catalog order. Kinds missing from the input are
        added (unearned unless their condition holds now).
    """
    by_kind = {achievement.kind: achievement for achievement in achievements}
    result = []
    for kind in AchievementKind:
        current = by_kind.get(kind) or Achievement(kind=kind)
        if current.is_earned:
            result.append(current)
            continue
        if _condition_met(kind, streak, day, reached_maximum):
            result.append(Achievement(kind=kind, earned_at=now))
        else:
            result.append(current.model_copy())
    return result


def newly_earned(
    before: Iterable[Achievement],
    after: Iterable[Achievement],
) -> list[AchievementKind]:
    """Kinds earned in after but not in before."""
    earned_before = {a.kind for a in before if a.is_earned}
    return [a.kind for a in after if a.is_earned and a.kind not in earned_before]
