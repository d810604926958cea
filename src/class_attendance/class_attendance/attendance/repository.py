from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_student_and_date(self, *, student_id: str, schedule_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def upsert(
        self,
        *,
        student_id: str,
        schedule_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        scanned_at: datetime,
        scanner_user_id: Optional[int],
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        """Insert or replace the row for (student, schedule, date)."""

        raise NotImplementedError

    def list_for_schedule_date(self, *, schedule_id: int, attendance_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
