"""
Progression Engine for DreamSpend

This module owns the whole game state and applies the game rules:
1. Day reconciliation (create today, backfill missed days, project allowances)
2. Saving spend lists (validate -> commit -> streak -> achievements)
3. Settings changes (language/currency switch, amounts, policy, reminder, FX)
4. Restart

DESIGN DECISION: The engine is the single mutator. Every public operation:
- reconciles the day list against the clock first
- validates before it mutates (a rejected call changes nothing)
- persists the full snapshot through the injected storage
- emits one GameEvent per committed change

The engine never performs I/O itself; storage is injected.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, Union

from dreamspend.audit import EventListener, GameEventLogger
from dreamspend.config import default_language_code
from dreamspend.models.events import (
    EventSeverity,
    GameEventBuilder,
    GameEventType,
)
from dreamspend.models.game import (
    Achievement,
    DayEntry,
    DayStatus,
    DraftBucket,
    GameSettings,
    GameSnapshot,
    MaxBehavior,
    SpendItem,
    SpendValidationResult,
    SupportedLanguage,
)
from dreamspend.services import achievements as achievement_rules
from dreamspend.services import fx, streak as streak_rules
from dreamspend.services.calendar import CalendarService
from dreamspend.services.language import (
    default_categories,
    normalize_category,
    switch_language,
    unique_categories,
)
from dreamspend.services.storage import SnapshotStorageInterface
from dreamspend.validation import SpendValidator, max_allowed_total


Clock = Callable[[], datetime]


class ProgressionEngine:
    """
    The game.

    State:
        settings, days, achievements, streak, pending allowance
        (amount, currency, carried rate), paused flag, draft buckets,
        custom categories. The celebration flag is transient.
    """

    def __init__(
        self,
        storage: SnapshotStorageInterface,
        calendar: Optional[CalendarService] = None,
        clock: Optional[Clock] = None,
        validator: Optional[SpendValidator] = None,
        event_logger: Optional[GameEventLogger] = None,
        default_language: Optional[Union[SupportedLanguage, str]] = None,
    ):
        """
        Load the stored game (or bootstrap a fresh one) and reconcile it.

        Args:
            storage: Snapshot load/save capability
            calendar: Local-day arithmetic (system time zone by default)
            clock: Source of "now" when an operation gets no explicit now
            validator: Spend list validator
            event_logger: Event sink; listeners can also be added via subscribe()
            default_language: Language of a fresh game; defaults to configuration
        """
        self._storage = storage
        self._calendar = calendar or CalendarService()
        self._clock = clock or self._calendar.now
        self._validator = validator or SpendValidator()
        self._events = event_logger or GameEventLogger()

        self._show_celebration = False

        snapshot = self._load_snapshot()
        if snapshot is not None:
            self._restore(snapshot)
            self._events.log(GameEventBuilder.game_loaded(len(self._days), self._streak))
        else:
            self._bootstrap(default_language)

        self.ensure_today()

    # =========================================================================
    # STATE ACCESS
    # =========================================================================

    @property
    def settings(self) -> GameSettings:
        return self._settings.model_copy(deep=True)

    @property
    def days(self) -> list[DayEntry]:
        return [day.model_copy(deep=True) for day in self._days]

    @property
    def achievements(self) -> list[Achievement]:
        return [achievement.model_copy() for achievement in self._achievements]

    @property
    def streak(self) -> int:
        return self._streak

    @property
    def pending_allowance_minor(self) -> int:
        return self._pending_allowance_minor

    @property
    def pending_currency(self) -> str:
        return self._pending_currency

    @property
    def pending_rate(self) -> Optional[Decimal]:
        return self._pending_rate

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def show_celebration(self) -> bool:
        return self._show_celebration

    @property
    def custom_categories(self) -> list[str]:
        return list(self._custom_categories)

    @property
    def default_categories(self) -> list[str]:
        return default_categories(self._settings.language)

    @property
    def category_suggestions(self) -> list[str]:
        return unique_categories(self.default_categories + self._custom_categories)

    @staticmethod
    def max_allowed_total(limit_minor: int) -> int:
        return max_allowed_total(limit_minor)

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Receive every GameEvent after it is committed. Returns an unsubscribe callable."""
        return self._events.subscribe(listener)

    def snapshot(self) -> GameSnapshot:
        """Deep copy of the full state, as persisted."""
        return GameSnapshot(
            settings=self._settings.model_copy(deep=True),
            days=[day.model_copy(deep=True) for day in self._days],
            achievements=[achievement.model_copy() for achievement in self._achievements],
            streak=self._streak,
            pending_allowance_minor=self._pending_allowance_minor,
            pending_currency=self._pending_currency,
            pending_rate=self._pending_rate,
            paused=self._paused,
            draft_buckets=[
                DraftBucket(day_index=day_index, items=[item.model_copy() for item in items])
                for day_index, items in sorted(self._drafts.items())
            ],
            custom_categories=list(self._custom_categories),
        )

    def today_entry(self, now: Optional[datetime] = None) -> Optional[DayEntry]:
        now = self._read(now)
        day = self._find_today(now)
        return day.model_copy(deep=True) if day else None

    def history(self, now: Optional[datetime] = None) -> list[DayEntry]:
        """All days, newest first."""
        self._read(now)
        return [
            day.model_copy(deep=True)
            for day in sorted(self._days, key=lambda d: d.day_index, reverse=True)
        ]

    def progress_to_max(self, now: Optional[datetime] = None) -> float:
        """Today's allowance as a fraction (0..1) of the active language's maximum."""
        today = self.today_entry(now)
        if today is None:
            return 0.0
        maximum = max(self._settings.max_amount_minor(), 1)
        return min(today.daily_limit_minor / maximum, 1.0)

    # =========================================================================
    # DAY LIFECYCLE
    # =========================================================================

    def ensure_today(self, now: Optional[datetime] = None) -> None:
        """Bring the day list up to date with the clock and persist."""
        now = now or self._clock()
        self._reconcile(now)
        self._persist()

    def save_today(self, items: Iterable[SpendItem], now: Optional[datetime] = None) -> bool:
        """
        Commit today's spend list.

        Returns:
            False (and no state change) if there is no entry for today,
            the list is empty or the total exceeds the 5% tolerance.
        """
        now = now or self._clock()
        changed = self._reconcile(now)
        items = list(items)

        day = self._find_today(now)
        result = self._validator.validate(items, day)
        if not result.is_valid:
            self._reject(result, changed)
            return False

        was_filled = day.status == DayStatus.FILLED
        self._commit_items(day, items, DayStatus.FILLED)
        if not was_filled:
            self._streak = streak_rules.next_streak(self._streak, filled_today=True)

        reached_maximum = day.daily_limit_minor >= self._maximum_amount(day.currency_code)
        before = self._achievements
        self._achievements = achievement_rules.evaluate(
            self._achievements,
            streak=self._streak,
            day=day,
            reached_maximum=reached_maximum,
            now=now,
        )

        if reached_maximum:
            self._show_celebration = True
            if self._settings.max_behavior == MaxBehavior.CEILING:
                self._paused = True

        self._persist()

        self._events.log(GameEventBuilder.day_filled(
            day_index=day.day_index,
            total_minor=result.total_minor,
            limit_minor=day.daily_limit_minor,
            currency_code=day.currency_code,
            streak=self._streak,
        ))
        for kind in achievement_rules.newly_earned(before, self._achievements):
            self._events.log(GameEventBuilder.achievement_earned(kind.value, day.day_index))
        if reached_maximum:
            self._events.log(GameEventBuilder.maximum_reached(
                day.day_index, day.daily_limit_minor, self._paused
            ))
        return True

    def save_day(
        self,
        day_index: int,
        items: Iterable[SpendItem],
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Commit the spend list of any day.

        Today's entry goes through save_today (streak, achievements).
        Past days are only re-labelled: Filled, or Missed when cleared
        with an empty list.
        """
        now = now or self._clock()
        changed = self._reconcile(now)
        items = list(items)

        day = self._find_day(day_index)
        result = self._validator.validate(items, day, allow_empty=True)
        if not result.is_valid:
            self._reject(result, changed)
            return False

        today = self._find_today(now)
        if today is not None and today.day_index == day_index:
            return self.save_today(items, now=now)

        self._commit_items(day, items, DayStatus.FILLED if items else DayStatus.MISSED)
        self._persist()
        self._events.log(GameEventBuilder.day_filled(
            day_index=day.day_index,
            total_minor=result.total_minor,
            limit_minor=day.daily_limit_minor,
            currency_code=day.currency_code,
            streak=self._streak,
        ))
        return True

    def restart_game(self, now: Optional[datetime] = None) -> None:
        """Start over from day 1. Settings and custom categories are kept."""
        now = now or self._clock()
        language = self._settings.language

        self._days = []
        self._streak = 0
        self._paused = False
        self._show_celebration = False
        self._drafts = {}
        self._pending_allowance_minor = self._settings.start_amount_minor(language)
        self._pending_currency = self._settings.currency_code(language)
        self._pending_rate = None
        self._achievements = achievement_rules.bootstrap()

        self._reconcile(now)
        self._persist()
        self._events.log(GameEventBuilder.simple(
            GameEventType.GAME_RESTARTED,
            "Game restarted",
            {"start_amount_minor": self._days[0].daily_limit_minor if self._days else None},
        ))

    def dismiss_celebration(self) -> None:
        self._show_celebration = False
        self._persist()
        self._events.log(GameEventBuilder.simple(
            GameEventType.CELEBRATION_DISMISSED, "Celebration dismissed"
        ))

    # =========================================================================
    # DRAFTS & CATEGORIES
    # =========================================================================

    def draft_items(self, day_index: int) -> list[SpendItem]:
        return [item.model_copy() for item in self._drafts.get(day_index, [])]

    def update_draft_items(
        self,
        day_index: int,
        items: Iterable[SpendItem],
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Replace the draft of an Open day. An empty list removes the draft.

        Returns:
            False if the day is not Open (nothing is stored for it).
        """
        now = now or self._clock()
        self._reconcile(now)
        items = [item.model_copy() for item in items]

        day = self._find_day(day_index)
        if not items:
            self._drafts.pop(day_index, None)
        elif day is None or day.status != DayStatus.OPEN:
            self._drafts.pop(day_index, None)
            self._persist()
            return False
        else:
            self._drafts[day_index] = items

        self._persist()
        self._events.log(GameEventBuilder.simple(
            GameEventType.DRAFT_UPDATED,
            f"Draft for day {day_index} has {len(items)} items",
            day_index=day_index,
            severity=EventSeverity.DEBUG,
        ))
        return True

    def add_custom_category(self, category: str, now: Optional[datetime] = None) -> bool:
        self._reconcile(now or self._clock())
        value = normalize_category(category)
        if not value:
            return False
        self._custom_categories = unique_categories(self._custom_categories + [value])
        self._persist()
        self._log_categories()
        return True

    def remove_custom_category(self, category: str, now: Optional[datetime] = None) -> bool:
        self._reconcile(now or self._clock())
        value = normalize_category(category)
        if not value:
            return False
        key = value.casefold()
        self._custom_categories = [c for c in self._custom_categories if c.casefold() != key]
        self._persist()
        self._log_categories()
        return True

    # =========================================================================
    # SETTINGS
    # =========================================================================

    def update_language(
        self,
        language: Union[SupportedLanguage, str],
        now: Optional[datetime] = None,
    ) -> None:
        """
        Switch language, and with it the currency of the pending allowance.

        Days already created keep their currency and recorded rate.
        """
        self._reconcile(now or self._clock())
        new_language = SupportedLanguage(language)
        old_language = self._settings.language
        if new_language == old_language:
            self._persist()
            return

        result = switch_language(
            self._pending_allowance_minor,
            old_language,
            new_language,
            self._settings,
        )
        self._settings.language = new_language
        self._pending_allowance_minor = result.new_amount_minor
        self._pending_currency = result.new_currency_code
        self._pending_rate = result.conversion_rate_used
        self._persist()

        self._events.log(GameEventBuilder.language_switched(
            old_language=old_language.value,
            new_language=new_language.value,
            amount_minor=result.new_amount_minor,
            currency_code=result.new_currency_code,
            rate=str(result.conversion_rate_used),
        ))

    def update_start_amount(
        self,
        amount_minor: int,
        language: Optional[Union[SupportedLanguage, str]] = None,
        now: Optional[datetime] = None,
    ) -> None:
        self._reconcile(now or self._clock())
        language = SupportedLanguage(language) if language else self._settings.language
        self._settings.start_amount_minor_by_language[language] = max(amount_minor, 1)
        self._persist()
        self._log_settings("start_amount_minor", language, max(amount_minor, 1))

    def update_max_amount(
        self,
        amount_minor: int,
        language: Optional[Union[SupportedLanguage, str]] = None,
        now: Optional[datetime] = None,
    ) -> None:
        self._reconcile(now or self._clock())
        language = SupportedLanguage(language) if language else self._settings.language
        self._settings.max_amount_minor_by_language[language] = max(amount_minor, 1)
        self._persist()
        self._log_settings("max_amount_minor", language, max(amount_minor, 1))

    def update_max_behavior(
        self,
        behavior: Union[MaxBehavior, str],
        now: Optional[datetime] = None,
    ) -> None:
        self._reconcile(now or self._clock())
        self._settings.max_behavior = MaxBehavior(behavior)
        self._persist()
        self._log_settings("max_behavior", None, self._settings.max_behavior.value)

    def update_reminder(
        self,
        hour: int,
        minute: int,
        enabled: bool,
        now: Optional[datetime] = None,
    ) -> None:
        self._reconcile(now or self._clock())
        self._settings.reminder_hour = min(max(hour, 0), 23)
        self._settings.reminder_minute = min(max(minute, 0), 59)
        self._settings.notifications_enabled = enabled
        self._persist()
        self._events.log(GameEventBuilder.simple(
            GameEventType.REMINDER_UPDATED,
            "Reminder updated",
            {
                "hour": self._settings.reminder_hour,
                "minute": self._settings.reminder_minute,
                "enabled": enabled,
            },
        ))

    def update_fx(
        self,
        source: str,
        target: str,
        rate: Decimal,
        now: Optional[datetime] = None,
    ) -> None:
        """Set SRC->TGT (and its reciprocal) in the approximate rate table."""
        self._reconcile(now or self._clock())
        self._settings.approx_fx_table = fx.update_table(
            self._settings.approx_fx_table, source, target, rate
        )
        self._persist()
        self._events.log(GameEventBuilder.simple(
            GameEventType.FX_RATE_UPDATED,
            f"Rate {fx.fx_key(source, target)} updated",
            {"pair": fx.fx_key(source, target), "rate": str(rate)},
        ))

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _load_snapshot(self) -> Optional[GameSnapshot]:
        try:
            return self._storage.load()
        except Exception as e:
            self._events.log(GameEventBuilder.storage_failed(
                GameEventType.SNAPSHOT_LOAD_FAILED, str(e)
            ))
            return None

    def _restore(self, snapshot: GameSnapshot) -> None:
        self._settings = snapshot.settings
        self._days = sorted(snapshot.days, key=lambda day: day.day_index)
        self._achievements = snapshot.achievements or achievement_rules.bootstrap()
        self._streak = snapshot.streak
        self._pending_allowance_minor = snapshot.pending_allowance_minor
        self._pending_currency = snapshot.pending_currency
        self._pending_rate = snapshot.pending_rate
        self._paused = snapshot.paused
        self._drafts = {bucket.day_index: bucket.items for bucket in snapshot.draft_buckets}
        self._custom_categories = unique_categories(snapshot.custom_categories)

    def _bootstrap(self, default_language: Optional[Union[SupportedLanguage, str]]) -> None:
        if isinstance(default_language, SupportedLanguage):
            language = default_language
        else:
            language = SupportedLanguage.from_code(default_language or default_language_code())
        self._settings = GameSettings.default(language)
        self._days = []
        self._achievements = achievement_rules.bootstrap()
        self._streak = 0
        self._pending_allowance_minor = self._settings.start_amount_minor(language)
        self._pending_currency = self._settings.currency_code(language)
        self._pending_rate = None
        self._paused = False
        self._drafts: dict[int, list[SpendItem]] = {}
        self._custom_categories: list[str] = []
        self._events.log(GameEventBuilder.game_bootstrapped(
            language.value, self._pending_allowance_minor
        ))

    def _read(self, now: Optional[datetime]) -> datetime:
        """Reconcile before a read; persist only if something changed."""
        now = now or self._clock()
        if self._reconcile(now):
            self._persist()
        return now

    def _reconcile(self, now: datetime) -> bool:
        """
        Make the day list current.

        Returns:
            True if any state changed.
        """
        if self._paused:
            return False

        today = self._calendar.today(now)
        self._days.sort(key=lambda day: day.day_index)
        created: list[int] = []
        missed: list[int] = []

        if not self._days:
            created.append(self._add_day(today, DayStatus.OPEN).day_index)
        else:
            for day in self._days:
                if day.status == DayStatus.OPEN and day.calendar_date < today:
                    day.status = DayStatus.MISSED
                    missed.append(day.day_index)

            last_date = self._days[-1].calendar_date
            distance = self._calendar.day_distance(last_date, today)
            for step in range(1, distance + 1):
                day_date = self._calendar.add_days(step, last_date)
                status = DayStatus.OPEN if day_date == today else DayStatus.MISSED
                created.append(self._add_day(day_date, status).day_index)

        reset = False
        if streak_rules.should_reset(self._days) and self._streak != 0:
            self._events.log(GameEventBuilder.streak_reset(self._streak))
            self._streak = 0
            reset = True

        purged = self._purge_drafts()

        if created or missed:
            self._events.log(GameEventBuilder.days_reconciled(
                created, missed, self._pending_allowance_minor
            ))
        return bool(created or missed or reset or purged)

    def _add_day(self, day_date: date, status: DayStatus) -> DayEntry:
        """Append a day using the pending allowance, then project the next one."""
        day = DayEntry(
            day_index=(self._days[-1].day_index if self._days else 0) + 1,
            calendar_date=day_date,
            currency_code=self._pending_currency,
            daily_limit_minor=self._pending_allowance_minor,
            status=status,
            conversion_rate_used=self._pending_rate,
        )
        self._days.append(day)
        self._pending_rate = None
        self._pending_allowance_minor = self._projected_amount(
            day.daily_limit_minor, day.currency_code
        )
        return day

    def _projected_amount(self, limit_minor: int, currency_code: str) -> int:
        maximum = self._maximum_amount(currency_code)
        if limit_minor < maximum:
            return min(limit_minor * 2, maximum)
        if self._settings.max_behavior == MaxBehavior.CEILING:
            return maximum
        return self._start_amount(currency_code)

    def _maximum_amount(self, currency_code: str) -> int:
        # Unknown currencies fall back to the active language
        return self._settings.max_amount_minor(
            self._settings.language_for_currency(currency_code)
        )

    def _start_amount(self, currency_code: str) -> int:
        return self._settings.start_amount_minor(
            self._settings.language_for_currency(currency_code)
        )

    def _purge_drafts(self) -> bool:
        open_indices = {day.day_index for day in self._days if day.status == DayStatus.OPEN}
        stale = [day_index for day_index in self._drafts if day_index not in open_indices]
        for day_index in stale:
            del self._drafts[day_index]
        return bool(stale)

    def _find_day(self, day_index: int) -> Optional[DayEntry]:
        return next((day for day in self._days if day.day_index == day_index), None)

    def _find_today(self, now: datetime) -> Optional[DayEntry]:
        today = self._calendar.today(now)
        return next(
            (day for day in reversed(self._days) if day.calendar_date == today),
            None,
        )

    def _commit_items(self, day: DayEntry, items: list[SpendItem], status: DayStatus) -> None:
        day.items = [item.model_copy() for item in items]
        day.status = status
        self._drafts.pop(day.day_index, None)
        categories = [item.category for item in items if item.category]
        self._custom_categories = unique_categories(self._custom_categories + categories)

    def _reject(self, result: SpendValidationResult, reconciled: bool) -> None:
        if reconciled:
            self._persist()
        self._events.log(GameEventBuilder.spend_rejected(
            result.day_index,
            [issue.model_dump() for issue in result.issues],
        ))

    def _persist(self) -> None:
        try:
            self._storage.save(self.snapshot())
        except Exception as e:
            # Best-effort: the in-memory game stays authoritative
            self._events.log(GameEventBuilder.storage_failed(
                GameEventType.SNAPSHOT_SAVE_FAILED, str(e)
            ))

    def _log_settings(
        self,
        field: str,
        language: Optional[SupportedLanguage],
        value: object,
    ) -> None:
        self._events.log(GameEventBuilder.simple(
            GameEventType.SETTINGS_UPDATED,
            f"Setting {field} updated",
            {"field": field, "language": language.value if language else None, "value": value},
        ))

    def _log_categories(self) -> None:
        self._events.log(GameEventBuilder.simple(
            GameEventType.CATEGORIES_UPDATED,
            "Custom categories updated",
            {"custom_categories": list(self._custom_categories)},
        ))
