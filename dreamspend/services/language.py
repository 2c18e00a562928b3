"""
Language / currency switching.

Switching language switches currency. Only the PENDING allowance (the one
the next created day will get) is converted; days already in the list keep
their currency and recorded rate forever.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from dreamspend.models.game import GameSettings, SupportedLanguage
from dreamspend.services import fx

DEFAULT_CATEGORIES_BY_LANGUAGE: dict[SupportedLanguage, list[str]] = {
    SupportedLanguage.RU: [
        "Еда", "Транспорт", "Дом", "Одежда",
        "Развлечения", "Подарки", "Здоровье", "Путешествия",
    ],
    SupportedLanguage.EN: [
        "Food", "Transport", "Home", "Clothes",
        "Entertainment", "Gifts", "Health", "Travel",
    ],
    SupportedLanguage.DE: [
        "Essen", "Transport", "Haushalt", "Kleidung",
        "Unterhaltung", "Geschenke", "Gesundheit", "Reisen",
    ],
}


@dataclass(frozen=True)
class LanguageSwitchResult:
    new_amount_minor: int
    new_currency_code: str
    conversion_rate_used: Decimal


def switch_language(
    amount_minor: int,
    old_language: SupportedLanguage,
    new_language: SupportedLanguage,
    settings: GameSettings,
) -> LanguageSwitchResult:
    """Convert the pending allowance into the new language's currency (floored at 1)."""
    conversion = fx.convert(
        amount_minor,
        settings.currency_code(old_language),
        settings.currency_code(new_language),
        settings.approx_fx_table,
    )
    return LanguageSwitchResult(
        new_amount_minor=max(conversion.converted_minor, 1),
        new_currency_code=settings.currency_code(new_language),
        conversion_rate_used=conversion.rate,
    )


def default_categories(language: SupportedLanguage) -> list[str]:
    return list(
        DEFAULT_CATEGORIES_BY_LANGUAGE.get(language)
        or DEFAULT_CATEGORIES_BY_LANGUAGE[SupportedLanguage.EN]
    )


def normalize_category(value: str) -> str:
    return value.strip()


def unique_categories(categories: Iterable[str]) -> list[str]:
    """Trimmed, non-empty, case-insensitively unique; first-seen casing wins."""
    seen: set[str] = set()
    result = []
    for category in categories:
        trimmed = normalize_category(category)
        if not trimmed:
            continue
        key = trimmed.casefold()
        if key not in seen:
            seen.add(key)
            result.append(trimmed)
    return result
