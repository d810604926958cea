from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, student_id, schedule_id, attendance_date, status, scanned_at, scanner_user_id, note"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        student_id=str(r["student_id"]),
        schedule_id=int(r["schedule_id"]),
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        scanned_at=r["scanned_at"],
        scanner_user_id=int(r["scanner_user_id"]) if r.get("scanner_user_id") is not None else None,
        note=r.get("note"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_student_and_date(self, *, student_id: str, schedule_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE student_id=%s AND schedule_id=%s AND attendance_date=%s
                """,
                (str(student_id), int(schedule_id), attendance_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(student_id, schedule_id, attendance_date, status, scanned_at, scanner_user_id, note)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    scanned_at=VALUES(scanned_at),
                    scanner_user_id=VALUES(scanner_user_id),
                    note=VALUES(note)
                """,
                (str(student_id), int(schedule_id), attendance_date, status.value, scanned_at, scanner_user_id, note),
            )
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE student_id=%s AND schedule_id=%s AND attendance_date=%s
                """,
                (str(student_id), int(schedule_id), attendance_date),
            )
            return _to_record(fetchone(cur))

    def list_for_schedule_date(self, *, schedule_id: int, attendance_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE schedule_id=%s AND attendance_date=%s
                ORDER BY scanned_at
                """,
                (int(schedule_id), attendance_date),
            )
            return [_to_record(r) for r in fetchall(cur)]
