from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional, Protocol

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid date (YYYY-MM-DD)")


def parse_hhmm(value: Optional[str]) -> Optional[time]:
    v = (value or "").strip()
    if not v:
        return None
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise ValidationError("Invalid time (HH:MM)")


def sunday_first_weekday(d: date) -> int:
    """Day of week with 0 = Sunday ... 6 = Saturday."""
    return (d.weekday() + 1) % 7


def isoformat_utc(value: datetime) -> str:
    """Millisecond ISO-8601 in UTC with a trailing 'Z'."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class Clock(Protocol):
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    """Current UTC time.

    Note: Wrapped so tests can inject a fixed clock.
    """

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def now_local() -> datetime:
    """Current local wall-clock time (naive), used for scan-time comparisons."""
    return datetime.now()
