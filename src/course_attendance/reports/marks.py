"""Attendance percentage and marks rules.

Every report computes its numbers through these two functions.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ..core.constants import MAX_MARKS
from ..core.exceptions import ValidationError


def attendance_percentage(present_days: int, total_days: int) -> int:
    """present / total x 100 rounded half-up to an integer; 0 when nothing was recorded."""
    if total_days <= 0:
        return 0
    value = Decimal(int(present_days)) * 100 / Decimal(int(total_days))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def marks_from_percentage(percentage) -> float:
    """Map 0-100 linearly onto 0-5, rounded half-up to two decimals."""
    try:
        value = Decimal(str(percentage))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid attendance percentage: {percentage}")
    if not value.is_finite() or value < 0 or value > 100:
        raise ValidationError(f"Invalid attendance percentage: {percentage}")
    marks = (value * MAX_MARKS / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(marks)
