"""
Event Models for DreamSpend

Every committed engine operation produces one GameEvent.
Events are:
1. Written to the structured log
2. Handed to listeners subscribed on the engine (UI refresh, reminders)

DESIGN DECISION: Events are emitted AFTER the state change is committed
and persisted. A rejected operation emits a rejection event and
changes nothing.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class GameEventType(str, Enum):
    """Types of events the engine emits."""
    # Day lifecycle
    GAME_LOADED = "game_loaded"
    GAME_BOOTSTRAPPED = "game_bootstrapped"
    DAYS_RECONCILED = "days_reconciled"
    STREAK_RESET = "streak_reset"

    # Spending
    DAY_FILLED = "day_filled"
    SPEND_REJECTED = "spend_rejected"
    DRAFT_UPDATED = "draft_updated"

    # Progress
    ACHIEVEMENT_EARNED = "achievement_earned"
    MAXIMUM_REACHED = "maximum_reached"
    CELEBRATION_DISMISSED = "celebration_dismissed"
    GAME_RESTARTED = "game_restarted"

    # Settings
    LANGUAGE_SWITCHED = "language_switched"
    SETTINGS_UPDATED = "settings_updated"
    REMINDER_UPDATED = "reminder_updated"
    FX_RATE_UPDATED = "fx_rate_updated"
    CATEGORIES_UPDATED = "categories_updated"

    # System events
    SNAPSHOT_LOAD_FAILED = "snapshot_load_failed"
    SNAPSHOT_SAVE_FAILED = "snapshot_save_failed"


class EventSeverity(str, Enum):
    """Severity level for game events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameEvent(BaseModel):
    """A single committed (or rejected) engine operation."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )
    event_type: GameEventType
    severity: EventSeverity = EventSeverity.INFO
    day_index: Optional[int] = Field(
        default=None,
        description="Day the event relates to, if any"
    )
    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "day_index": self.day_index,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class GameEventBuilder:
    """
    Helper class to build game events with common patterns.

    Usage:
        event = GameEventBuilder.day_filled(day_index=3, total_minor=1000, ...)
    """

    @staticmethod
    def game_loaded(day_count: int, streak: int) -> GameEvent:
        return GameEvent(
            event_type=GameEventType.GAME_LOADED,
            description=f"Snapshot loaded with {day_count} days",
            details={"day_count": day_count, "streak": streak},
        )

    @staticmethod
    def game_bootstrapped(language: str, start_amount_minor: int) -> GameEvent:
        return GameEvent(
            event_type=GameEventType.GAME_BOOTSTRAPPED,
            description="Fresh game state created",
            details={"language": language, "start_amount_minor": start_amount_minor},
        )

    @staticmethod
    def days_reconciled(
        created: list[int],
        missed: list[int],
        pending_allowance_minor: int,
    ) -> GameEvent:
        return GameEvent(
            event_type=GameEventType.DAYS_RECONCILED,
            severity=EventSeverity.DEBUG if not created and not missed else EventSeverity.INFO,
            day_index=created[-1] if created else None,
            description=f"Reconciled days: {len(created)} created, {len(missed)} missed",
            details={
                "created": created,
                "missed": missed,
                "pending_allowance_minor": pending_allowance_minor,
            },
        )

    @staticmethod
    def streak_reset(previous: int) -> GameEvent:
        return GameEvent(
            event_type=GameEventType.STREAK_RESET,
            description="Streak reset after two missed days",
            details={"previous_streak": previous},
        )

    @staticmethod
    def day_filled(
        day_index: int,
        total_minor: int,
        limit_minor: int,
        currency_code: str,
        streak: int,
    ) -> GameEvent:
        return GameEvent(
            event_type=GameEventType.DAY_FILLED,
            day_index=day_index,
            description=f"Day {day_index} filled: {total_minor}/{limit_minor} {currency_code}",
            details={
                "total_minor": total_minor,
                "limit_minor": limit_minor,
                "currency_code": currency_code,
                "streak": streak,
            },
        )

    @staticmethod
    def spend_rejected(day_index: Optional[int], issues: list[dict]) -> GameEvent:
        return GameEvent(
            event_type=GameEventType.SPEND_REJECTED,
            severity=EventSeverity.WARNING,
            day_index=day_index,
            description=f"Spend list rejected with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def achievement_earned(kind: str, day_index: Optional[int]) -> GameEvent:
        return GameEvent(
            event_type=GameEventType.ACHIEVEMENT_EARNED,
            day_index=day_index,
            description=f"Achievement earned: {kind}",
            details={"kind": kind},
        )

    @staticmethod
    def maximum_reached(day_index: int, limit_minor: int, paused: bool) -> GameEvent:
        return GameEvent(
            event_type=GameEventType.MAXIMUM_REACHED,
            day_index=day_index,
            description=f"Maximum allowance reached on day {day_index}",
            details={"limit_minor": limit_minor, "paused": paused},
        )

    @staticmethod
    def language_switched(
        old_language: str,
        new_language: str,
        amount_minor: int,
        currency_code: str,
        rate: str,
    ) -> GameEvent:
        return GameEvent(
            event_type=GameEventType.LANGUAGE_SWITCHED,
            description=f"Language switched {old_language} -> {new_language}",
            details={
                "old_language": old_language,
                "new_language": new_language,
                "pending_allowance_minor": amount_minor,
                "pending_currency": currency_code,
                "rate": rate,
            },
        )

    @staticmethod
    def simple(
        event_type: GameEventType,
        description: str,
        details: Optional[dict] = None,
        day_index: Optional[int] = None,
        severity: EventSeverity = EventSeverity.INFO,
    ) -> GameEvent:
        return GameEvent(
            event_type=event_type,
            severity=severity,
            day_index=day_index,
            description=description,
            details=details or {},
        )

    @staticmethod
    def storage_failed(
        event_type: GameEventType,
        error_message: str,
    ) -> GameEvent:
        return GameEvent(
            event_type=event_type,
            severity=EventSeverity.WARNING if event_type == GameEventType.SNAPSHOT_LOAD_FAILED else EventSeverity.ERROR,
            description=f"Snapshot storage failure: {event_type.value}",
            error_message=error_message,
        )
