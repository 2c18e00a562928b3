"""
Approximate FX conversion utility.

Centralizes the directed rate table used when the pending allowance is
carried over to another currency.
Responsibilities:
    - Look up a directed rate ("SRC->TGT") with identity and default fallback.
    - Convert minor-unit amounts, rounding once, half-to-even, in one place.
    - Produce updated tables with a best-effort reciprocal entry.

A missing rate is NOT an error: it silently falls back to 1. Callers
must not assume a configured rate exists.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

from dreamspend.services.money import from_major, to_major

DEFAULT_RATE = Decimal(1)


@dataclass(frozen=True)
class ConversionResult:
    original_minor: int
    source_currency: str
    target_currency: str
    rate: Decimal
    converted_minor: int


def fx_key(source_currency: str, target_currency: str) -> str:
    return f"{source_currency.upper()}->{target_currency.upper()}"


def rate(table: Mapping[str, Decimal], source_currency: str, target_currency: str) -> Decimal:
    if source_currency.upper() == target_currency.upper():
        return DEFAULT_RATE
    return table.get(fx_key(source_currency, target_currency), DEFAULT_RATE)


def convert(
    amount_minor: int,
    source_currency: str,
    target_currency: str,
    table: Mapping[str, Decimal],
) -> ConversionResult:
    used = rate(table, source_currency, target_currency)
    major = to_major(amount_minor, source_currency) * used
    return ConversionResult(
        original_minor=amount_minor,
        source_currency=source_currency.upper(),
        target_currency=target_currency.upper(),
        rate=used,
        converted_minor=from_major(major, target_currency),
    )


def update_table(
    table: Mapping[str, Decimal],
    source_currency: str,
    target_currency: str,
    new_rate: Decimal,
) -> dict[str, Decimal]:
    """
    Return a copy of table with SRC->TGT set to new_rate.

    When new_rate is non-zero TGT->SRC is set to its reciprocal. The
    reverse entry is a point-in-time estimate; editing either direction
    later does not re-derive the other.
    """
    new_rate = Decimal(str(new_rate))
    updated = dict(table)
    updated[fx_key(source_currency, target_currency)] = new_rate
    if new_rate != 0:
        updated[fx_key(target_currency, source_currency)] = DEFAULT_RATE / new_rate
    return updated
