"""
Money / rounding helpers.

Amounts are integers in minor units. Conversions between major and
minor units round half-to-even at the currency's fraction-digit boundary,
so every module that touches money rounds identically.
"""

from decimal import ROUND_HALF_EVEN, Decimal

DEFAULT_FRACTION_DIGITS = 2

# Currencies without a minor unit (ISO 4217 exponent 0)
FRACTION_DIGITS: dict[str, int] = {
    "BIF": 0,
    "CLP": 0,
    "DJF": 0,
    "GNF": 0,
    "ISK": 0,
    "JPY": 0,
    "KMF": 0,
    "KRW": 0,
    "PYG": 0,
    "RWF": 0,
    "UGX": 0,
    "VND": 0,
    "VUV": 0,
    "XAF": 0,
    "XOF": 0,
    "XPF": 0,
}


def fraction_digits(currency_code: str) -> int:
    """Minor-unit digits for a currency; unknown currencies use 2."""
    return FRACTION_DIGITS.get(currency_code.upper(), DEFAULT_FRACTION_DIGITS)


def round_half_even(value: Decimal) -> int:
    """Round to the nearest integer, ties to even."""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_EVEN))


def from_major(value: Decimal, currency_code: str) -> int:
    """Major units (e.g. 12.345 USD) to minor units (1234)."""
    return round_half_even(Decimal(str(value)).scaleb(fraction_digits(currency_code)))


def to_major(amount_minor: int, currency_code: str) -> Decimal:
    """Minor units (1234) to major units (Decimal('12.34'))."""
    return Decimal(amount_minor).scaleb(-fraction_digits(currency_code))


def format_minor(amount_minor: int, currency_code: str) -> str:
    """Plain "12.34 USD" rendering, used in log lines."""
    digits = fraction_digits(currency_code)
    return f"{to_major(amount_minor, currency_code):.{digits}f} {currency_code.upper()}"
