"""
Spend List Validation

DESIGN DECISION: A spend list is validated BEFORE the engine touches any
state. The engine only mutates after a clean SpendValidationResult, which
makes every save all-or-nothing.

Checks:
- The list is not empty (an empty save of the current day is meaningless)
- The total does not exceed the allowance plus the 5% tolerance

IMPORTANT: Validation NEVER trims or fixes the list.
It reports the problem and the caller decides.
"""

from typing import Iterable, Optional

from dreamspend.models.game import (
    DayEntry,
    SpendItem,
    SpendValidationIssue,
    SpendValidationResult,
)
from dreamspend.services.money import format_minor

# Users may overshoot the allowance by up to 5%
OVERSPEND_TOLERANCE_PERCENT = 5


def max_allowed_total(limit_minor: int) -> int:
    """floor(limit * 1.05) in integer arithmetic."""
    return (limit_minor * (100 + OVERSPEND_TOLERANCE_PERCENT)) // 100


class SpendValidator:
    """Validates a proposed item list against one day."""

    def validate(
        self,
        items: Iterable[SpendItem],
        day: Optional[DayEntry],
        allow_empty: bool = False,
    ) -> SpendValidationResult:
        """
        Validate items for day.

        Args:
            items: Proposed item list
            day: Target day, None if the day does not exist
            allow_empty: Past days may be cleared with an empty list

        Returns:
            SpendValidationResult; is_valid is False on any error issue
        """
        items = list(items)

        if day is None:
            return SpendValidationResult(
                issues=[SpendValidationIssue(
                    issue_type="unknown_day",
                    message="There is no day to save these items to",
                )],
            )

        total = sum(item.amount_minor for item in items)
        allowed = max_allowed_total(day.daily_limit_minor)
        issues = []

        if not items and not allow_empty:
            issues.append(SpendValidationIssue(
                issue_type="empty",
                message="Add at least one item before saving",
            ))

        if total > allowed:
            issues.append(SpendValidationIssue(
                issue_type="overspend",
                message=(
                    f"Total {format_minor(total, day.currency_code)} exceeds the "
                    f"allowed {format_minor(allowed, day.currency_code)}"
                ),
            ))
        elif total > day.daily_limit_minor:
            issues.append(SpendValidationIssue(
                issue_type="within_tolerance",
                message="Total is above the allowance but within the 5% tolerance",
                severity="warning",
            ))

        return SpendValidationResult(
            day_index=day.day_index,
            total_minor=total,
            limit_minor=day.daily_limit_minor,
            allowed_minor=allowed,
            issues=issues,
        )
