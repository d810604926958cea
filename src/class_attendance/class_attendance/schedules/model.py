from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import OverrideStatus, OverrideType
from ..overrides.state import OverrideState


@dataclass(frozen=True)
class Schedule:
    """Recurring weekly meeting of a subject, scoped to one term.

    ``day_of_week`` is 0 = Sunday ... 6 = Saturday.
    """

    schedule_id: int
    subject_id: int
    teacher_user_id: int
    section_id: Optional[int]
    day_of_week: int
    start_time: time
    end_time: time
    room: Optional[str]
    academic_year_id: int
    semester_id: int


@dataclass(frozen=True)
class ScheduleOverride:
    """One-day exception to a schedule, at most one per (schedule, date)."""

    override_id: int
    schedule_id: int
    override_date: date
    override_type: OverrideType
    new_start_time: Optional[time]
    new_end_time: Optional[time]
    reason: Optional[str]
    state: OverrideState
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def status(self) -> OverrideStatus:
        return self.state.status

    @property
    def admin_notes(self) -> Optional[str]:
        return self.state.admin_notes


@dataclass(frozen=True)
class EffectiveWindow:
    """The window that actually governs ``on_date``; no times when cancelled."""

    schedule_id: int
    on_date: date
    source: str
    override_type: Optional[OverrideType]
    start_time: Optional[time]
    end_time: Optional[time]

    @property
    def is_cancelled(self) -> bool:
        return self.override_type == OverrideType.CANCEL
