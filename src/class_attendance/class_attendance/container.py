from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceRecorder
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .audit.service import AuditService
from .common.datetime_utils import Clock
from .core.constants import DEFAULT_LATE_GRACE_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .overrides.service import OverrideService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.repository import ScheduleRepository
from .terms.mysql_term_repository import MySQLTermRepository
from .terms.repository import TermRepository
from .terms.service import TermService
from .tokens.mysql_token_repository import MySQLTokenLogRepository
from .tokens.repository import TokenLogRepository
from .tokens.service import TokenService
from .tokens.signing import HmacSigner


@dataclass(frozen=True)
class Container:
    terms_repo: TermRepository
    schedules_repo: ScheduleRepository
    tokens_repo: TokenLogRepository
    attendance_repo: AttendanceRepository
    audit_repo: AuditRepository

    audit_service: AuditService
    term_service: TermService
    override_service: OverrideService
    token_service: TokenService
    attendance_recorder: AttendanceRecorder

    conn: Optional[DatabaseConnection] = None


def wire_container(
    *,
    terms_repo: TermRepository,
    schedules_repo: ScheduleRepository,
    tokens_repo: TokenLogRepository,
    attendance_repo: AttendanceRepository,
    audit_repo: AuditRepository,
    qr_secret: str,
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    revoke_on_scan: bool = False,
    clock: Optional[Clock] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    audit_service = AuditService(audit_repo)
    term_service = TermService(terms_repo, audit_service)
    override_service = OverrideService(schedules_repo, audit_service)
    token_service = TokenService(tokens_repo, term_service, HmacSigner(qr_secret), clock=clock)
    attendance_recorder = AttendanceRecorder(
        attendance_repo,
        token_service,
        override_service,
        audit_service,
        strategy_factory=AttendanceStrategyFactory(),
        grace_minutes=grace_minutes,
        revoke_on_scan=revoke_on_scan,
    )

    return Container(
        terms_repo=terms_repo,
        schedules_repo=schedules_repo,
        tokens_repo=tokens_repo,
        attendance_repo=attendance_repo,
        audit_repo=audit_repo,
        audit_service=audit_service,
        term_service=term_service,
        override_service=override_service,
        token_service=token_service,
        attendance_recorder=attendance_recorder,
        conn=conn,
    )


def build_container(
    *,
    db_config: dict,
    qr_secret: str,
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    revoke_on_scan: bool = False,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_container(
        terms_repo=MySQLTermRepository(conn),
        schedules_repo=MySQLScheduleRepository(conn),
        tokens_repo=MySQLTokenLogRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        qr_secret=qr_secret,
        grace_minutes=grace_minutes,
        revoke_on_scan=revoke_on_scan,
        conn=conn,
    )
