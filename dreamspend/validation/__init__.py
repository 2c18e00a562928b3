"""Spend validation package."""

from dreamspend.validation.validator import (
    OVERSPEND_TOLERANCE_PERCENT,
    SpendValidator,
    max_allowed_total,
)

__all__ = ["OVERSPEND_TOLERANCE_PERCENT", "SpendValidator", "max_allowed_total"]
