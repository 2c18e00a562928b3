"""
Tests for DreamSpend

Test strategy:
1. Unit tests for individual components (models, rules, validators)
2. Engine tests driven by in-memory storage and a fixed clock
3. No real network calls in tests (httpx.MockTransport)
"""

import json
from datetime import date
from decimal import Decimal

import pytest

from dreamspend.models.game import (
    Achievement,
    AchievementKind,
    DayEntry,
    DayStatus,
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


class TestDayModels:
    """Tests for day-related Pydantic models."""

    def test_spend_item_strips_whitespace(self):
        """Test that the title is trimmed."""
        item = SpendItem(title="  Coffee  ", amount_minor=350)
        assert item.title == "Coffee"

    def test_spend_item_requires_title(self):
        """Test that a blank title is rejected."""
        with pytest.raises(ValueError):
            SpendItem(title="   ", amount_minor=100)

    def test_spend_item_clamps_negative_amount(self):
        """Test that negative amounts are clamped to zero."""
        item = SpendItem(title="Refund", amount_minor=-500)
        assert item.amount_minor == 0

    def test_spend_item_empty_category_is_none(self):
        """Test that an empty category is stored as None."""
        item = SpendItem(title="Bread", amount_minor=100, category="  ")
        assert item.category is None

    def test_day_entry_totals(self):
        """Test total and remaining amounts."""
        day = DayEntry(
            day_index=1,
            calendar_date=date(2024, 3, 1),
            currency_code="USD",
            daily_limit_minor=1000,
            items=[
                SpendItem(title="A", amount_minor=300),
                SpendItem(title="B", amount_minor=200),
            ],
        )
        assert day.total_spent_minor == 500
        assert day.remaining_minor == 500
        assert not day.is_perfect_fill

    def test_day_entry_perfect_fill_requires_filled_status(self):
        """Test that an Open day is never a perfect fill."""
        day = DayEntry(
            day_index=1,
            calendar_date=date(2024, 3, 1),
            currency_code="USD",
            daily_limit_minor=500,
            items=[SpendItem(title="A", amount_minor=500)],
        )
        assert not day.is_perfect_fill
        day.status = DayStatus.FILLED
        assert day.is_perfect_fill

    def test_day_entry_rejects_zero_index(self):
        """Test that day indices are 1-based."""
        with pytest.raises(ValueError):
            DayEntry(day_index=0, calendar_date=date(2024, 3, 1), currency_code="USD")

    def test_achievement_is_earned(self):
        """Test the earned flag follows earned_at."""
        assert not Achievement(kind=AchievementKind.STREAK_3).is_earned


class TestGameSettings:
    """Tests for settings defaults, clamps and legacy decoding."""

    def test_defaults_per_language(self):
        """Test default amounts and currencies."""
        settings = GameSettings.default(SupportedLanguage.DE)
        assert settings.language == SupportedLanguage.DE
        assert settings.currency_code() == "EUR"
        assert settings.start_amount_minor() == 460
        assert settings.max_amount_minor(SupportedLanguage.EN) == 100_000_000
        assert settings.max_behavior == MaxBehavior.RESET_AND_RESTART

    def test_amounts_clamped_to_one(self):
        """Test that start/max amounts below 1 are clamped."""
        settings = GameSettings(
            start_amount_minor_by_language={SupportedLanguage.EN: 0},
            max_amount_minor_by_language={SupportedLanguage.EN: -10},
        )
        assert settings.start_amount_minor(SupportedLanguage.EN) == 1
        assert settings.max_amount_minor(SupportedLanguage.EN) == 1

    def test_missing_language_amounts_use_fallback(self):
        """Test fallbacks for languages absent from the maps."""
        settings = GameSettings(
            start_amount_minor_by_language={},
            max_amount_minor_by_language={},
        )
        assert settings.start_amount_minor(SupportedLanguage.RU) == 100
        assert settings.max_amount_minor(SupportedLanguage.RU) == 10_000

    def test_legacy_max_behavior_is_normalized(self):
        """Test that the retired stop policy decodes as reset-and-restart."""
        settings = GameSettings.model_validate({"max_behavior": "celebrate-and-stop"})
        assert settings.max_behavior == MaxBehavior.RESET_AND_RESTART

    def test_unknown_max_behavior_rejected(self):
        """Test that arbitrary policy values are not accepted."""
        with pytest.raises(ValueError):
            GameSettings.model_validate({"max_behavior": "explode"})

    def test_language_for_currency(self):
        """Test reverse lookup from currency to language."""
        settings = GameSettings.default()
        assert settings.language_for_currency("RUB") == SupportedLanguage.RU
        assert settings.language_for_currency("JPY") is None

    def test_language_from_locale_code(self):
        """Test locale prefix matching with English fallback."""
        assert SupportedLanguage.from_code("de_DE") == SupportedLanguage.DE
        assert SupportedLanguage.from_code("ru") == SupportedLanguage.RU
        assert SupportedLanguage.from_code("fr_FR") == SupportedLanguage.EN
        assert SupportedLanguage.from_code(None) == SupportedLanguage.EN


class TestGameSnapshot:
    """Tests for the persisted snapshot schema."""

    def test_optional_fields_default_to_empty(self):
        """Test that older snapshots without drafts/categories still load."""
        payload = json.dumps({
            "settings": {"language": "en"},
            "days": [],
            "achievements": [],
            "streak": 2,
            "pending_allowance_minor": 1000,
            "pending_currency": "USD",
            "paused": False,
            "draft_buckets": None,
        })
        snapshot = GameSnapshot.from_json(payload)
        assert snapshot.draft_buckets == []
        assert snapshot.custom_categories == []
        assert snapshot.pending_rate is None

    def test_legacy_policy_in_snapshot(self):
        """Test legacy policy normalization through the snapshot decoder."""
        payload = json.dumps({
            "settings": {"language": "ru", "max_behavior": "celebrate-and-stop"},
            "pending_currency": "RUB",
        })
        snapshot = GameSnapshot.from_json(payload)
        assert snapshot.settings.max_behavior == MaxBehavior.RESET_AND_RESTART

    def test_json_keeps_decimal_rates(self):
        """Test that carried rates survive serialization exactly."""
        snapshot = GameSnapshot(
            settings=GameSettings.default(),
            pending_currency="EUR",
            pending_rate=Decimal("0.92"),
        )
        restored = GameSnapshot.from_json(snapshot.to_json())
        assert restored.pending_rate == Decimal("0.92")
        assert restored.settings.approx_fx_table["USD->RUB"] == Decimal("100")

    def test_corrupt_payload_raises(self):
        """Test that garbage raises a validation error for callers to handle."""
        with pytest.raises(ValueError):
            GameSnapshot.from_json("{not json")


class TestEventModels:
    """Tests for game event models."""

    def test_event_to_log_dict(self):
        """Test conversion to a log dictionary."""
        event = GameEvent(
            event_type=GameEventType.DAY_FILLED,
            day_index=3,
            description="Day 3 filled",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "day_filled"
        assert log_dict["severity"] == "info"
        assert log_dict["day_index"] == 3

    def test_builder_spend_rejected(self):
        """Test that rejections are warnings."""
        event = GameEventBuilder.spend_rejected(2, [{"issue_type": "overspend"}])
        assert event.event_type == GameEventType.SPEND_REJECTED
        assert event.severity == EventSeverity.WARNING
        assert event.details["issues"][0]["issue_type"] == "overspend"

    def test_builder_storage_failed_severity(self):
        """Test severities for load and save failures."""
        load = GameEventBuilder.storage_failed(GameEventType.SNAPSHOT_LOAD_FAILED, "boom")
        save = GameEventBuilder.storage_failed(GameEventType.SNAPSHOT_SAVE_FAILED, "boom")
        assert load.severity == EventSeverity.WARNING
        assert save.severity == EventSeverity.ERROR
        assert save.error_message == "boom"


class TestValidationResult:
    """Tests for SpendValidationResult."""

    def test_validation_result_has_errors(self):
        """Test that error issues make the result invalid."""
        result = SpendValidationResult(
            total_minor=1100,
            limit_minor=1000,
            issues=[SpendValidationIssue(issue_type="overspend", message="too much")],
        )
        assert not result.is_valid
        assert result.overage_minor == 100

    def test_validation_result_warnings_only(self):
        """Test that warnings alone keep the result valid."""
        result = SpendValidationResult(
            issues=[SpendValidationIssue(
                issue_type="within_tolerance",
                message="slightly over",
                severity="warning",
            )],
        )
        assert result.is_valid


class TestAchievementCatalog:
    """Tests for the achievement catalog."""

    def test_all_kinds_exist(self):
        """Test catalog order."""
        assert [kind.value for kind in AchievementKind] == [
            "streak_3", "streak_7", "streak_14", "streak_30",
            "perfect_fill", "reached_maximum",
        ]

    def test_required_streaks(self):
        """Test streak thresholds."""
        assert AchievementKind.STREAK_14.required_streak == 14
        assert AchievementKind.PERFECT_FILL.required_streak is None
