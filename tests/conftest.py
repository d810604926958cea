from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time, timezone
from typing import Optional

import pytest

from src.class_attendance.class_attendance.attendance.model import AttendanceRecord
from src.class_attendance.class_attendance.audit.model import AuditEntry
from src.class_attendance.class_attendance.auth.capabilities import Principal
from src.class_attendance.class_attendance.container import wire_container
from src.class_attendance.class_attendance.core.enums import AttendanceStatus, OverrideStatus, Role
from src.class_attendance.class_attendance.core.exceptions import (
    ConcurrencyConflictError,
    InvalidRelationError,
    NotFoundError,
)
from src.class_attendance.class_attendance.schedules.model import Schedule, ScheduleOverride
from src.class_attendance.class_attendance.terms.model import AcademicYear, ActiveTerm, Semester
from src.class_attendance.class_attendance.tokens.model import TokenLogEntry

QR_SECRET = "test-qr-secret"


class InMemoryTerms:
    def __init__(self):
        self.years: dict[int, AcademicYear] = {}
        self.semesters: dict[int, Semester] = {}
        self.active = ActiveTerm()
        self._next_id = 1

    def _new_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid

    def get_year(self, academic_year_id: int) -> Optional[AcademicYear]:
        return self.years.get(int(academic_year_id))

    def get_year_by_name(self, name: str) -> Optional[AcademicYear]:
        return next((y for y in self.years.values() if y.name == name), None)

    def list_years(self):
        return sorted(self.years.values(), key=lambda y: y.start_date, reverse=True)

    def create_year(self, *, name: str, start_date: date, end_date: date) -> int:
        yid = self._new_id()
        self.years[yid] = AcademicYear(academic_year_id=yid, name=name, start_date=start_date, end_date=end_date)
        return yid

    def get_semester(self, semester_id: int) -> Optional[Semester]:
        return self.semesters.get(int(semester_id))

    def find_semester(self, *, academic_year_id: int, name: str) -> Optional[Semester]:
        return next(
            (s for s in self.semesters.values() if s.academic_year_id == academic_year_id and s.name == name),
            None,
        )

    def list_semesters(self, academic_year_id: int):
        return [s for s in self.semesters.values() if s.academic_year_id == int(academic_year_id)]

    def create_semester(self, *, academic_year_id: int, name: str) -> int:
        sid = self._new_id()
        self.semesters[sid] = Semester(semester_id=sid, academic_year_id=int(academic_year_id), name=name)
        return sid

    def get_active_term(self) -> ActiveTerm:
        return self.active

    def activate_year(self, academic_year_id: int) -> ActiveTerm:
        year_id = int(academic_year_id)
        if year_id not in self.years:
            raise NotFoundError("Academic year not found")
        semester_id = self.active.semester_id
        if semester_id is not None and self.semesters[semester_id].academic_year_id != year_id:
            semester_id = None
        self.years = {k: replace(y, is_active=k == year_id) for k, y in self.years.items()}
        self.semesters = {k: replace(s, is_active=k == semester_id) for k, s in self.semesters.items()}
        self.active = ActiveTerm(academic_year_id=year_id, semester_id=semester_id)
        return self.active

    def activate_term(self, academic_year_id: int, semester_id: int) -> ActiveTerm:
        year_id, sem_id = int(academic_year_id), int(semester_id)
        if year_id not in self.years:
            raise NotFoundError("Academic year not found")
        if sem_id not in self.semesters:
            raise NotFoundError("Semester not found")
        if self.semesters[sem_id].academic_year_id != year_id:
            raise InvalidRelationError("Semester does not belong to this academic year")
        self.years = {k: replace(y, is_active=k == year_id) for k, y in self.years.items()}
        self.semesters = {k: replace(s, is_active=k == sem_id) for k, s in self.semesters.items()}
        self.active = ActiveTerm(academic_year_id=year_id, semester_id=sem_id)
        return self.active


class InMemorySchedules:
    def __init__(self):
        self.schedules: dict[int, Schedule] = {}
        self.overrides: dict[int, ScheduleOverride] = {}
        self._next_id = 1

    def add_schedule(self, schedule: Schedule) -> Schedule:
        self.schedules[schedule.schedule_id] = schedule
        return schedule

    def get_schedule(self, schedule_id: int) -> Optional[Schedule]:
        return self.schedules.get(int(schedule_id))

    def get_override(self, override_id: int) -> Optional[ScheduleOverride]:
        return self.overrides.get(int(override_id))

    def find_override(self, *, schedule_id: int, override_date: date) -> Optional[ScheduleOverride]:
        return self._lookup(schedule_id, override_date)

    def _lookup(self, schedule_id: int, override_date: date) -> Optional[ScheduleOverride]:
        return next(
            (o for o in self.overrides.values() if o.schedule_id == schedule_id and o.override_date == override_date),
            None,
        )

    def find_approved_override(self, *, schedule_id: int, override_date: date) -> Optional[ScheduleOverride]:
        o = self._lookup(schedule_id, override_date)
        return o if o is not None and o.status == OverrideStatus.APPROVED else None

    def insert_override(self, *, schedule_id, override_date, override_type, new_start_time, new_end_time, reason, state) -> int:
        if self._lookup(schedule_id, override_date):
            raise ConcurrencyConflictError("An override already exists for this schedule on this date")
        oid = self._next_id
        self._next_id += 1
        self.overrides[oid] = ScheduleOverride(
            override_id=oid,
            schedule_id=int(schedule_id),
            override_date=override_date,
            override_type=override_type,
            new_start_time=new_start_time,
            new_end_time=new_end_time,
            reason=reason,
            state=state,
            version=1,
            created_at=datetime(2026, 2, 1, 10, 0, 0),
        )
        return oid

    def resubmit_override(self, *, override_id, expected_version, override_type, new_start_time, new_end_time, reason, state) -> bool:
        current = self.overrides.get(int(override_id))
        if not current or current.version != expected_version:
            return False
        self.overrides[current.override_id] = replace(
            current,
            override_type=override_type,
            new_start_time=new_start_time,
            new_end_time=new_end_time,
            reason=reason,
            state=state,
            version=current.version + 1,
        )
        return True

    def update_override_state(self, *, override_id, expected_version, state) -> bool:
        current = self.overrides.get(int(override_id))
        if not current or current.version != expected_version:
            return False
        self.overrides[current.override_id] = replace(current, state=state, version=current.version + 1)
        return True

    def list_overrides(self, *, status=None, teacher_user_id=None, limit=200):
        items = list(self.overrides.values())
        if status is not None:
            items = [o for o in items if o.status == status]
        if teacher_user_id is not None:
            items = [o for o in items if self.schedules[o.schedule_id].teacher_user_id == teacher_user_id]
        return items[:limit]


class InMemoryTokenLog:
    def __init__(self):
        self.entries: dict[str, TokenLogEntry] = {}

    def insert(self, entry: TokenLogEntry) -> None:
        if entry.uuid in self.entries:
            raise ConcurrencyConflictError("Token nonce collision")
        self.entries[entry.uuid] = entry

    def find_live(self, *, uuid, student_id, academic_year_id, semester_id):
        e = self.entries.get(uuid)
        if (
            e is None
            or e.is_revoked
            or e.student_id != student_id
            or (e.academic_year_id, e.semester_id) != (academic_year_id, semester_id)
        ):
            return None
        return e

    def revoke(self, uuid: str) -> bool:
        e = self.entries.get(uuid)
        if e is None or e.is_revoked:
            return False
        self.entries[uuid] = replace(e, is_revoked=True)
        return True


class InMemoryAttendance:
    def __init__(self):
        self.records: dict[tuple[str, int, date], AttendanceRecord] = {}
        self._id = 0

    def get_for_student_and_date(self, *, student_id, schedule_id, attendance_date):
        return self.records.get((student_id, schedule_id, attendance_date))

    def upsert(self, *, student_id, schedule_id, attendance_date, status: AttendanceStatus, scanned_at, scanner_user_id, note=None):
        key = (student_id, schedule_id, attendance_date)
        existing = self.records.get(key)
        if existing is None:
            self._id += 1
            attendance_id = self._id
        else:
            attendance_id = existing.attendance_id
        rec = AttendanceRecord(
            attendance_id=attendance_id,
            student_id=student_id,
            schedule_id=schedule_id,
            attendance_date=attendance_date,
            status=status,
            scanned_at=scanned_at,
            scanner_user_id=scanner_user_id,
            note=note,
        )
        self.records[key] = rec
        return rec

    def list_for_schedule_date(self, *, schedule_id, attendance_date):
        return [r for r in self.records.values() if r.schedule_id == schedule_id and r.attendance_date == attendance_date]


class InMemoryAudit:
    def __init__(self):
        self.entries: list[AuditEntry] = []
        self.fail = False

    def append(self, entry: AuditEntry) -> None:
        if self.fail:
            raise RuntimeError("audit store unavailable")
        self.entries.append(entry)

    def list_recent(self, *, entity=None, limit=200):
        items = [e for e in self.entries if entity is None or e.entity == entity]
        return list(reversed(items))[:limit]

    def actions(self) -> list[str]:
        return [e.action for e in self.entries]


class FixedClock:
    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current


@pytest.fixture
def admin() -> Principal:
    return Principal(user_id=1, role=Role.ADMIN, full_name="Admin")


@pytest.fixture
def teacher() -> Principal:
    return Principal(user_id=2, role=Role.TEACHER, full_name="Teacher")


@pytest.fixture
def other_teacher() -> Principal:
    return Principal(user_id=3, role=Role.TEACHER, full_name="Other Teacher")


@pytest.fixture
def student() -> Principal:
    return Principal(user_id=10, role=Role.STUDENT, full_name="Student")


@pytest.fixture
def terms_repo() -> InMemoryTerms:
    return InMemoryTerms()


@pytest.fixture
def schedules_repo() -> InMemorySchedules:
    return InMemorySchedules()


@pytest.fixture
def tokens_repo() -> InMemoryTokenLog:
    return InMemoryTokenLog()


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def audit_repo() -> InMemoryAudit:
    return InMemoryAudit()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 2, 2, 8, 0, 0, 123456, tzinfo=timezone.utc))


@pytest.fixture
def container(terms_repo, schedules_repo, tokens_repo, attendance_repo, audit_repo, clock):
    return wire_container(
        terms_repo=terms_repo,
        schedules_repo=schedules_repo,
        tokens_repo=tokens_repo,
        attendance_repo=attendance_repo,
        audit_repo=audit_repo,
        qr_secret=QR_SECRET,
        grace_minutes=15,
        clock=clock,
    )


@pytest.fixture
def active_term(terms_repo) -> ActiveTerm:
    """2025-2026 / First Semester, activated."""
    year_id = terms_repo.create_year(name="2025-2026", start_date=date(2025, 8, 1), end_date=date(2026, 7, 31))
    sem_id = terms_repo.create_semester(academic_year_id=year_id, name="First Semester")
    return terms_repo.activate_term(year_id, sem_id)


@pytest.fixture
def monday_schedule(schedules_repo, active_term, teacher) -> Schedule:
    """Mondays 08:00-10:00 taught by ``teacher`` in the active term."""
    return schedules_repo.add_schedule(
        Schedule(
            schedule_id=100,
            subject_id=7,
            teacher_user_id=teacher.user_id,
            section_id=1,
            day_of_week=1,
            start_time=time(8, 0),
            end_time=time(10, 0),
            room="A101",
            academic_year_id=active_term.academic_year_id,
            semester_id=active_term.semester_id,
        )
    )
