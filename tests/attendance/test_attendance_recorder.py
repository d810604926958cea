from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time

import pytest

from src.class_attendance.class_attendance.attendance.service import AttendanceRecorder
from src.class_attendance.class_attendance.core.enums import AttendanceStatus
from src.class_attendance.class_attendance.core.exceptions import (
    InactiveTermError,
    InvalidSignatureError,
    NotFoundError,
    TokenNotFoundError,
    ValidationError,
)

MONDAY = date(2026, 2, 2)


def _at(hour, minute, day=MONDAY):
    return datetime.combine(day, time(hour, minute))


def _approve(container, teacher, admin, schedule, **kwargs):
    o = container.override_service.propose(teacher, schedule_id=schedule.schedule_id, override_date=MONDAY, **kwargs)
    container.override_service.decide(admin, override_id=o.override_id, status="APPROVED")


def test_scan_within_grace_is_present(container, teacher, monday_schedule, active_term, audit_repo):
    wire = container.token_service.issue("10").to_wire()

    rec = container.attendance_recorder.record_scan(teacher, wire, monday_schedule.schedule_id, now=_at(8, 10))

    assert rec.status == AttendanceStatus.PRESENT
    assert rec.student_id == "10"
    assert rec.attendance_date == MONDAY
    assert rec.scanner_user_id == teacher.user_id
    assert audit_repo.actions()[-1] == "attendance.scan"


def test_scan_after_grace_is_late(container, teacher, monday_schedule, active_term):
    wire = container.token_service.issue("10").to_wire()

    rec = container.attendance_recorder.record_scan(teacher, wire, monday_schedule.schedule_id, now=_at(8, 16))

    assert rec.status == AttendanceStatus.LATE


def test_scan_uses_approved_override_window(container, teacher, admin, monday_schedule, active_term):
    _approve(
        container,
        teacher,
        admin,
        monday_schedule,
        override_type="time-change",
        new_start_time=time(9, 0),
        new_end_time=time(11, 0),
    )
    wire = container.token_service.issue("10").to_wire()

    early = container.attendance_recorder.record_scan(teacher, wire, monday_schedule.schedule_id, now=_at(8, 50))
    assert early.status == AttendanceStatus.PRESENT

    late = container.attendance_recorder.record_scan(teacher, wire, monday_schedule.schedule_id, now=_at(9, 20))
    assert late.status == AttendanceStatus.LATE
    assert late.attendance_id == early.attendance_id


def test_scan_on_cancelled_meeting_fails(container, teacher, admin, monday_schedule, active_term, attendance_repo):
    _approve(container, teacher, admin, monday_schedule, override_type="cancel")
    wire = container.token_service.issue("10").to_wire()

    with pytest.raises(ValidationError):
        container.attendance_recorder.record_scan(teacher, wire, monday_schedule.schedule_id, now=_at(8, 5))
    assert attendance_repo.records == {}


def test_scan_on_other_weekday_fails(container, teacher, monday_schedule, active_term):
    wire = container.token_service.issue("10").to_wire()

    with pytest.raises(ValidationError):
        container.attendance_recorder.record_scan(teacher, wire, monday_schedule.schedule_id, now=_at(8, 5, date(2026, 2, 3)))


def test_scan_for_schedule_of_other_term_fails(container, teacher, monday_schedule, active_term, schedules_repo):
    schedules_repo.add_schedule(replace(monday_schedule, schedule_id=200, semester_id=999))
    wire = container.token_service.issue("10").to_wire()

    with pytest.raises(InactiveTermError):
        container.attendance_recorder.record_scan(teacher, wire, 200, now=_at(8, 5))


def test_scan_unknown_schedule(container, teacher, active_term):
    wire = container.token_service.issue("10").to_wire()

    with pytest.raises(NotFoundError):
        container.attendance_recorder.record_scan(teacher, wire, 999, now=_at(8, 5))


def test_scan_with_tampered_token_writes_nothing(container, teacher, monday_schedule, active_term, attendance_repo):
    wire = container.token_service.issue("10").to_wire()
    wire["student_id"] = "11"

    with pytest.raises(InvalidSignatureError):
        container.attendance_recorder.record_scan(teacher, wire, monday_schedule.schedule_id, now=_at(8, 5))
    assert attendance_repo.records == {}


def test_revoke_on_scan_makes_token_single_use(container, teacher, monday_schedule, active_term, attendance_repo):
    recorder = AttendanceRecorder(
        attendance_repo,
        container.token_service,
        container.override_service,
        container.audit_service,
        revoke_on_scan=True,
    )
    wire = container.token_service.issue("10").to_wire()

    recorder.record_scan(teacher, wire, monday_schedule.schedule_id, now=_at(8, 5))

    with pytest.raises(TokenNotFoundError):
        recorder.record_scan(teacher, wire, monday_schedule.schedule_id, now=_at(8, 6))


def test_scan_note_overrides_strategy_note(container, teacher, monday_schedule, active_term):
    wire = container.token_service.issue("10").to_wire()

    rec = container.attendance_recorder.record_scan(
        teacher, wire, monday_schedule.schedule_id, now=_at(8, 5), note=" came via side door "
    )

    assert rec.note == "came via side door"
    assert [r.student_id for r in container.attendance_recorder.list_for_schedule(monday_schedule.schedule_id, MONDAY)] == ["10"]
