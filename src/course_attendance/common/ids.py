from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import ValidationError


def normalize_id(value: Any, field_name: str = "id") -> int:
    """Map an identifier to its canonical integer form.

    Legacy payloads carry foreign keys either as integers or as their decimal
    string form ("42"). Both are accepted and resolve to the same key, so
    queries never need to match on two representations.
    """

    if isinstance(value, bool):
        raise ValidationError(f"{field_name} is invalid")
    if isinstance(value, int):
        if value <= 0:
            raise ValidationError(f"{field_name} is invalid")
        return value
    if isinstance(value, str):
        v = value.strip()
        if v.isdigit() and int(v) > 0:
            return int(v)
    raise ValidationError(f"{field_name} is invalid")


def normalize_optional_id(value: Any, field_name: str = "id") -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return normalize_id(value, field_name)
