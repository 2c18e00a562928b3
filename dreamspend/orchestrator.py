"""
Main Orchestrator for DreamSpend

This module ties together all the components and defines the flows that
live OUTSIDE the game engine:
1. Rate refresh (live API -> engine.update_fx, pair by pair)
2. Reminder forwarding (engine event -> platform scheduler)

DESIGN DECISION: The engine never suspends and never talks to the network.
Anything slow or external happens here, and its result enters the engine
through the same synchronous operations the user would call.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Optional, Protocol

import structlog

from dreamspend.audit import GameEventLogger
from dreamspend.config import Settings, get_settings
from dreamspend.engine import ProgressionEngine
from dreamspend.models.events import GameEvent, GameEventType
from dreamspend.models.game import GameSettings, SupportedLanguage
from dreamspend.services import fx
from dreamspend.services.calendar import CalendarService
from dreamspend.services.rates import LiveRateService, RateFetchError
from dreamspend.services.storage import InMemorySnapshotStorage, create_snapshot_storage

logger = structlog.get_logger("dreamspend.orchestrator")


# Pairs refreshed from the live API, per active language
LIVE_REFRESH_PAIRS: dict[SupportedLanguage, list[tuple[str, str]]] = {
    SupportedLanguage.RU: [("USD", "RUB"), ("EUR", "RUB")],
    SupportedLanguage.EN: [("USD", "EUR")],
    SupportedLanguage.DE: [("EUR", "USD")],
}

# Pair offered for manual editing, per active language
MANUAL_FX_PAIRS: dict[SupportedLanguage, tuple[str, str]] = {
    SupportedLanguage.RU: ("USD", "RUB"),
    SupportedLanguage.EN: ("USD", "EUR"),
    SupportedLanguage.DE: ("EUR", "USD"),
}


def manual_fx_pair(language: SupportedLanguage) -> tuple[str, str]:
    return MANUAL_FX_PAIRS[SupportedLanguage(language)]


def current_manual_rate(settings: GameSettings) -> Decimal:
    """Table value of the manual pair for the active language (1 if unset)."""
    source, target = manual_fx_pair(settings.language)
    return fx.rate(settings.approx_fx_table, source, target)


# =============================================================================
# RATE REFRESH
# =============================================================================

@dataclass
class RateRefreshResult:
    success: bool
    message: str
    updated_pairs: list[str] = field(default_factory=list)


class RateRefreshFlow:
    """
    Refreshes the approximate rate table from the live API.

    Flow:
    1. Pick the pairs for the active language
    2. Fetch each pair in order
    3. Apply each rate through engine.update_fx as soon as it arrives
    4. Stop at the first failure

    Pairs applied before a failure stay applied.
    """

    def __init__(
        self,
        engine: ProgressionEngine,
        rate_service: Optional[LiveRateService] = None,
    ):
        self._engine = engine
        self._rate_service = rate_service or LiveRateService()

    async def refresh_for_current_language(self) -> RateRefreshResult:
        language = self._engine.settings.language
        updated: list[str] = []

        for source, target in LIVE_REFRESH_PAIRS[language]:
            try:
                new_rate = await self._rate_service.fetch_rate(source, target)
            except RateFetchError as e:
                logger.warning(
                    "rate_refresh_failed",
                    language=language.value,
                    pair=fx.fx_key(source, target),
                    error=str(e),
                )
                return RateRefreshResult(
                    success=False,
                    message=f"Could not update {fx.fx_key(source, target)}: {e}",
                    updated_pairs=updated,
                )
            self._engine.update_fx(source, target, new_rate)
            updated.append(fx.fx_key(source, target))

        logger.info("rate_refresh_completed", language=language.value, pairs=updated)
        return RateRefreshResult(
            success=True,
            message=f"Rates updated: {', '.join(updated)}",
            updated_pairs=updated,
        )


# =============================================================================
# REMINDERS
# =============================================================================

class ReminderScheduler(Protocol):
    """Platform hook that (re)schedules the daily reminder."""

    def schedule(self, hour: int, minute: int, enabled: bool) -> None:
        ...


class ReminderFlow:
    """
    Forwards committed reminder changes to the scheduler.

    Only reminder_updated events are forwarded; the engine has already
    clamped hour and minute by then.
    """

    def __init__(self, engine: ProgressionEngine, scheduler: ReminderScheduler):
        self._scheduler = scheduler
        self._unsubscribe: Optional[Callable[[], None]] = engine.subscribe(self._on_event)

    def _on_event(self, event: GameEvent) -> None:
        if event.event_type != GameEventType.REMINDER_UPDATED:
            return
        self._scheduler.schedule(
            event.details["hour"],
            event.details["minute"],
            event.details["enabled"],
        )

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


# =============================================================================
# WIRING
# =============================================================================

@dataclass
class AppComponents:
    engine: ProgressionEngine
    event_logger: GameEventLogger
    rate_refresh_flow: RateRefreshFlow
    reminder_flow: Optional[ReminderFlow] = None


def create_app_components(
    settings: Optional[Settings] = None,
    scheduler: Optional[ReminderScheduler] = None,
    calendar: Optional[CalendarService] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Configuration (defaults to get_settings())
        scheduler: Reminder scheduler; no reminder flow without one
        calendar: Local-day arithmetic (system time zone by default)

    Returns:
        AppComponents with the engine and its flows
    """
    settings = settings or get_settings()

    try:
        storage = create_snapshot_storage(settings)
    except Exception as e:
        # Storage not configured - continue with an unsaved game
        logger.warning("storage_not_configured", error=str(e))
        storage = InMemorySnapshotStorage()

    event_logger = GameEventLogger()
    engine = ProgressionEngine(
        storage=storage,
        calendar=calendar,
        event_logger=event_logger,
        default_language=settings.app.default_language,
    )

    rate_refresh_flow = RateRefreshFlow(
        engine,
        LiveRateService(settings.live_rates),
    )
    reminder_flow = ReminderFlow(engine, scheduler) if scheduler else None

    return AppComponents(
        engine=engine,
        event_logger=event_logger,
        rate_refresh_flow=rate_refresh_flow,
        reminder_flow=reminder_flow,
    )
