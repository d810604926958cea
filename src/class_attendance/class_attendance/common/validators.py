from __future__ import annotations

from datetime import time
from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_positive_id(value, field_name: str) -> int:
    try:
        v = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is invalid")
    if v <= 0:
        raise ValidationError(f"{field_name} is invalid")
    return v


def require_time_order(start: Optional[time], end: Optional[time], field_name: str = "Time window") -> None:
    if start is None or end is None:
        raise ValidationError(f"{field_name} needs both a start and an end time")
    if start >= end:
        raise ValidationError(f"{field_name} start must be before end")
