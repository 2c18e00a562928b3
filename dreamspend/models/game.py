"""
Core Data Models for DreamSpend

These models define the complete state of one game:
settings, the day list, achievements and the persisted snapshot.

DESIGN DECISION: All amounts are integers in MINOR units (cents, kopecks).
Floats never appear in stored state. Rates are Decimal.

DESIGN DECISION: Models clamp out-of-range amounts instead of rejecting
them. A snapshot written by an older build must still load.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class DayStatus(str, Enum):
    """
    Lifecycle status of a single day.

    OPEN -> FILLED (user saved the day) or OPEN -> MISSED (day passed).
    FILLED and MISSED are terminal for reconciliation.
    """
    OPEN = "open"
    FILLED = "filled"
    MISSED = "missed"


class MaxBehavior(str, Enum):
    """
    What happens once the daily allowance reaches the configured maximum.

    The retired "celebrate-and-stop" value is NOT a member. It is only
    understood by the GameSettings decoder, which maps it to RESET_AND_RESTART.
    """
    CEILING = "ceiling"
    RESET_AND_RESTART = "reset-and-restart"


# Spellings written by older builds
LEGACY_MAX_BEHAVIOR_VALUES: dict[str, MaxBehavior] = {
    "celebrate-and-stop": MaxBehavior.RESET_AND_RESTART,
    "celebrationAndStop": MaxBehavior.RESET_AND_RESTART,
    "celebration_and_stop": MaxBehavior.RESET_AND_RESTART,
    "resetAndRestart": MaxBehavior.RESET_AND_RESTART,
    "reset_and_restart": MaxBehavior.RESET_AND_RESTART,
}


class SupportedLanguage(str, Enum):
    """Languages the game ships with. Each one implies a home currency."""
    RU = "ru"
    EN = "en"
    DE = "de"

    @property
    def currency_code(self) -> str:
        return _LANGUAGE_CURRENCIES[self]

    @classmethod
    def from_code(cls, code: Optional[str]) -> "SupportedLanguage":
        """Resolve a language or locale code ("de_DE", "ru") with EN fallback."""
        value = (code or "").strip().lower()
        for language in (cls.RU, cls.DE):
            if value.startswith(language.value):
                return language
        return cls.EN


_LANGUAGE_CURRENCIES = {
    SupportedLanguage.RU: "RUB",
    SupportedLanguage.EN: "USD",
    SupportedLanguage.DE: "EUR",
}


class AchievementKind(str, Enum):
    """
    Achievement catalog.

    Order matters: it is the order achievements are bootstrapped and shown.
    """
    STREAK_3 = "streak_3"
    STREAK_7 = "streak_7"
    STREAK_14 = "streak_14"
    STREAK_30 = "streak_30"
    PERFECT_FILL = "perfect_fill"
    REACHED_MAXIMUM = "reached_maximum"

    @property
    def required_streak(self) -> Optional[int]:
        """Streak threshold for streak kinds, None for the others."""
        return _STREAK_THRESHOLDS.get(self)


_STREAK_THRESHOLDS = {
    AchievementKind.STREAK_3: 3,
    AchievementKind.STREAK_7: 7,
    AchievementKind.STREAK_14: 14,
    AchievementKind.STREAK_30: 30,
}


# =============================================================================
# DAY MODELS
# =============================================================================

class SpendItem(BaseModel):
    """
    One purchase the user "made" on a day.

    Title is required. Category is optional free text
    (an empty category is stored as None).
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique item ID"
    )
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What was bought"
    )
    amount_minor: int = Field(
        default=0,
        description="Price in minor units of the day's currency"
    )
    category: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Free-text category"
    )

    @field_validator('amount_minor')
    @classmethod
    def clamp_amount(cls, v: int) -> int:
        return max(v, 0)

    @field_validator('category')
    @classmethod
    def empty_category_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class DayEntry(BaseModel):
    """
    A single game day.

    day_index is 1-based and gapless. There is at most one entry
    per local calendar date.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique day ID"
    )
    day_index: int = Field(
        ...,
        ge=1,
        description="1-based position in the game"
    )
    calendar_date: date = Field(
        ...,
        description="Local calendar date of this day"
    )
    currency_code: str = Field(
        ...,
        min_length=3,
        max_length=3,
        description="ISO currency of the allowance"
    )
    daily_limit_minor: int = Field(
        default=0,
        description="Allowance for the day in minor units"
    )
    status: DayStatus = Field(
        default=DayStatus.OPEN,
        description="Lifecycle status"
    )
    conversion_rate_used: Optional[Decimal] = Field(
        default=None,
        description="Rate applied when the allowance was carried over a currency switch"
    )
    items: list[SpendItem] = Field(default_factory=list)

    @field_validator('daily_limit_minor')
    @classmethod
    def clamp_limit(cls, v: int) -> int:
        return max(v, 0)

    @property
    def total_spent_minor(self) -> int:
        return sum(item.amount_minor for item in self.items)

    @property
    def remaining_minor(self) -> int:
        return self.daily_limit_minor - self.total_spent_minor

    @property
    def is_perfect_fill(self) -> bool:
        """Filled and spent down to exactly zero."""
        return self.status == DayStatus.FILLED and self.remaining_minor == 0


class Achievement(BaseModel):
    """
    One catalog achievement.

    CRITICAL: earned_at is one-way. Once set it is never cleared or moved.
    """

    kind: AchievementKind
    earned_at: Optional[datetime] = None

    @property
    def is_earned(self) -> bool:
        return self.earned_at is not None


class DraftBucket(BaseModel):
    """Uncommitted item list for an Open day (persisted form of a draft)."""

    day_index: int = Field(..., ge=1)
    items: list[SpendItem] = Field(default_factory=list)


# =============================================================================
# SETTINGS
# =============================================================================

def _default_start_amounts() -> dict[SupportedLanguage, int]:
    return {
        SupportedLanguage.EN: 5_00,
        SupportedLanguage.DE: 4_60,
        SupportedLanguage.RU: 500_00,
    }


def _default_max_amounts() -> dict[SupportedLanguage, int]:
    return {
        SupportedLanguage.EN: 1_000_000_00,
        SupportedLanguage.DE: 920_000_00,
        SupportedLanguage.RU: 100_000_000_00,
    }


def _default_currencies() -> dict[SupportedLanguage, str]:
    return {language: language.currency_code for language in SupportedLanguage}


def _default_fx_table() -> dict[str, Decimal]:
    return {
        "USD->EUR": Decimal("0.92"),
        "EUR->USD": Decimal("1.0869565"),
        "USD->RUB": Decimal("100"),
        "RUB->USD": Decimal("0.01"),
        "EUR->RUB": Decimal("108"),
        "RUB->EUR": Decimal("0.0092593"),
    }


DEFAULT_START_AMOUNT_MINOR = 100
DEFAULT_MAX_AMOUNT_MINOR = 10_000


class GameSettings(BaseModel):
    """
    User-adjustable settings.

    Start and max amounts are kept per language, so switching language
    switches the whole allowance scale along with the currency.
    """

    language: SupportedLanguage = SupportedLanguage.EN
    start_amount_minor_by_language: dict[SupportedLanguage, int] = Field(
        default_factory=_default_start_amounts
    )
    max_amount_minor_by_language: dict[SupportedLanguage, int] = Field(
        default_factory=_default_max_amounts
    )
    currency_by_language: dict[SupportedLanguage, str] = Field(
        default_factory=_default_currencies
    )
    approx_fx_table: dict[str, Decimal] = Field(
        default_factory=_default_fx_table,
        description='Directed rates keyed "SRC->TGT"'
    )
    reminder_hour: int = Field(default=14, ge=0, le=23)
    reminder_minute: int = Field(default=15, ge=0, le=59)
    notifications_enabled: bool = False
    max_behavior: MaxBehavior = MaxBehavior.RESET_AND_RESTART

    @field_validator('start_amount_minor_by_language', 'max_amount_minor_by_language')
    @classmethod
    def clamp_amounts(cls, v: dict[SupportedLanguage, int]) -> dict[SupportedLanguage, int]:
        return {language: max(amount, 1) for language, amount in v.items()}

    @field_validator('max_behavior', mode='before')
    @classmethod
    def normalize_legacy_behavior(cls, v: Any) -> Any:
        """Map retired policy spellings to their replacement."""
        if isinstance(v, str) and v in LEGACY_MAX_BEHAVIOR_VALUES:
            return LEGACY_MAX_BEHAVIOR_VALUES[v]
        return v

    @classmethod
    def default(cls, language: Optional[SupportedLanguage] = None) -> "GameSettings":
        return cls(language=language or SupportedLanguage.EN)

    def currency_code(self, language: Optional[SupportedLanguage] = None) -> str:
        language = language or self.language
        return self.currency_by_language.get(language) or language.currency_code

    def start_amount_minor(self, language: Optional[SupportedLanguage] = None) -> int:
        language = language or self.language
        return self.start_amount_minor_by_language.get(language, DEFAULT_START_AMOUNT_MINOR)

    def max_amount_minor(self, language: Optional[SupportedLanguage] = None) -> int:
        language = language or self.language
        return self.max_amount_minor_by_language.get(language, DEFAULT_MAX_AMOUNT_MINOR)

    def language_for_currency(self, currency_code: str) -> Optional[SupportedLanguage]:
        """First language whose configured currency is currency_code."""
        for language in SupportedLanguage:
            if self.currency_code(language) == currency_code:
                return language
        return None


# =============================================================================
# SNAPSHOT - the only persisted unit
# =============================================================================

class GameSnapshot(BaseModel):
    """
    Full serializable engine state.

    draft_buckets and custom_categories were added later; snapshots
    without them load with empty values.
    """

    settings: GameSettings
    days: list[DayEntry] = Field(default_factory=list)
    achievements: list[Achievement] = Field(default_factory=list)
    streak: int = Field(default=0, ge=0)
    pending_allowance_minor: int = Field(default=0, ge=0)
    pending_currency: str
    pending_rate: Optional[Decimal] = None
    paused: bool = False
    draft_buckets: list[DraftBucket] = Field(default_factory=list)
    custom_categories: list[str] = Field(default_factory=list)

    @field_validator('draft_buckets', 'custom_categories', mode='before')
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, payload: str | bytes) -> "GameSnapshot":
        """Decode a stored snapshot. Raises pydantic.ValidationError on bad data."""
        return cls.model_validate_json(payload)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class SpendValidationIssue(BaseModel):
    """A single reason a spend list cannot be saved."""

    issue_type: str = Field(
        ...,
        description="Type of issue (e.g. 'empty', 'overspend', 'unknown_day')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning)$",
    )


class SpendValidationResult(BaseModel):
    """
    Outcome of validating a spend list against a day's allowance.

    Computed BEFORE any state is touched, so a rejected save leaves
    the engine unchanged.
    """

    day_index: Optional[int] = None
    total_minor: int = 0
    limit_minor: int = 0
    allowed_minor: int = 0
    issues: list[SpendValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not any(issue.severity == "error" for issue in self.issues)

    @property
    def overage_minor(self) -> int:
        """Amount spent above the plain allowance (tolerance not applied)."""
        return max(self.total_minor - self.limit_minor, 0)
