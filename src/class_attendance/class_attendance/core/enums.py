from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role claim carried by the authenticated principal."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class OverrideStatus(str, Enum):
    """Review status of a schedule override, as stored in the database."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class OverrideType(str, Enum):
    CANCEL = "cancel"
    HALF_DAY = "half-day"
    TIME_CHANGE = "time-change"

    @property
    def requires_window(self) -> bool:
        return self is not OverrideType.CANCEL


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored per student/schedule/date."""

    PRESENT = "PRESENT"
    LATE = "LATE"
    ABSENT = "ABSENT"
