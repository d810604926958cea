from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """One student's attendance at one schedule meeting."""

    attendance_id: int
    student_id: str
    schedule_id: int
    attendance_date: date
    status: AttendanceStatus
    scanned_at: datetime
    scanner_user_id: Optional[int] = None
    note: Optional[str] = None
