from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from ..audit.service import AuditService
from ..auth.capabilities import Principal
from ..common.datetime_utils import now_local, sunday_first_weekday
from ..core.constants import DEFAULT_LATE_GRACE_MINUTES
from ..core.exceptions import InactiveTermError, ValidationError
from ..overrides.service import OverrideService
from ..tokens.service import TokenService
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceRecorder:
    """Consumes a verified token at scan time and writes the attendance row."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        tokens: TokenService,
        overrides: OverrideService,
        audit: AuditService,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
        revoke_on_scan: bool = False,
    ):
        self._attendance = attendance
        self._tokens = tokens
        self._overrides = overrides
        self._audit = audit
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._grace_minutes = int(grace_minutes)
        self._revoke_on_scan = bool(revoke_on_scan)

    def record_scan(
        self,
        actor: Principal,
        payload: Any,
        schedule_id: int,
        *,
        now: Optional[datetime] = None,
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()

        token = self._tokens.verify(payload)

        schedule = self._overrides.get_schedule(schedule_id)
        if (str(schedule.academic_year_id), str(schedule.semester_id)) != (token.academic_year_id, token.semester_id):
            raise InactiveTermError(
                f"Schedule {schedule.schedule_id} is not in the term of token {token.uuid}"
            )
        if sunday_first_weekday(today) != schedule.day_of_week:
            raise ValidationError("This class does not meet today")

        window = self._overrides.resolve_effective(schedule.schedule_id, today)
        if window.is_cancelled:
            raise ValidationError("This class is cancelled today")

        strategy = self._factory.for_scan(now=now, window=window, grace_minutes=self._grace_minutes)
        decision = strategy.decide(now=now, window=window, grace_minutes=self._grace_minutes)

        record = self._attendance.upsert(
            student_id=token.student_id,
            schedule_id=schedule.schedule_id,
            attendance_date=today,
            status=decision.status,
            scanned_at=now.replace(tzinfo=None),
            scanner_user_id=int(actor.user_id),
            note=(note or "").strip() or decision.note,
        )

        if self._revoke_on_scan:
            self._tokens.revoke(token.uuid)

        logger.info(
            "Student %s marked %s for schedule %s on %s",
            record.student_id,
            record.status.value,
            record.schedule_id,
            record.attendance_date,
        )
        self._audit.record(
            actor,
            action="attendance.scan",
            entity="AttendanceRecord",
            entity_id=record.attendance_id,
            metadata={
                "studentId": record.student_id,
                "scheduleId": record.schedule_id,
                "date": record.attendance_date.isoformat(),
                "status": record.status.value,
            },
        )
        return record

    def list_for_schedule(self, schedule_id: int, on_date) -> Sequence[AttendanceRecord]:
        schedule = self._overrides.get_schedule(schedule_id)
        return self._attendance.list_for_schedule_date(schedule_id=schedule.schedule_id, attendance_date=on_date)
