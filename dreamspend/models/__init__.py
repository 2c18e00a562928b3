"""
Data Models Package

This package contains all Pydantic models used by the DreamSpend engine.
Everything the engine persists or emits conforms to these schemas.
"""

from dreamspend.models.game import (
    Achievement,
    AchievementKind,
    DayEntry,
    DayStatus,
    DraftBucket,
    GameSettings,
    GameSnapshot,
    MaxBehavior,
    SpendItem,
    SpendValidationIssue,
    SpendValidationResult,
    SupportedLanguage,
)
from dreamspend.models.events import (
    EventSeverity,
    GameEvent,
    GameEventBuilder,
    GameEventType,
)

__all__ = [
    # Game models
    "Achievement",
    "AchievementKind",
    "DayEntry",
    "DayStatus",
    "DraftBucket",
    "GameSettings",
    "GameSnapshot",
    "MaxBehavior",
    "SpendItem",
    "SpendValidationIssue",
    "SpendValidationResult",
    "SupportedLanguage",
    # Event models
    "EventSeverity",
    "GameEvent",
    "GameEventBuilder",
    "GameEventType",
]
