from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.constants import SETTINGS_ROW_ID
from ..core.exceptions import InvalidRelationError, NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AcademicYear, ActiveTerm, Semester
from .repository import TermRepository


def _to_year(r: dict) -> AcademicYear:
    return AcademicYear(
        academic_year_id=int(r["academic_year_id"]),
        name=r["name"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        is_active=bool(r["is_active"]),
    )


def _to_semester(r: dict) -> Semester:
    return Semester(
        semester_id=int(r["semester_id"]),
        academic_year_id=int(r["academic_year_id"]),
        name=r["name"],
        is_active=bool(r["is_active"]),
    )


class MySQLTermRepository(TermRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Academic years --------
    def get_year(self, academic_year_id: int) -> Optional[AcademicYear]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT academic_year_id, name, start_date, end_date, is_active
                FROM academic_years
                WHERE academic_year_id=%s
                """,
                (int(academic_year_id),),
            )
            r = fetchone(cur)
            return _to_year(r) if r else None

    def get_year_by_name(self, name: str) -> Optional[AcademicYear]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT academic_year_id, name, start_date, end_date, is_active
                FROM academic_years
                WHERE name=%s
                """,
                (name,),
            )
            r = fetchone(cur)
            return _to_year(r) if r else None

    def list_years(self) -> Sequence[AcademicYear]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT academic_year_id, name, start_date, end_date, is_active
                FROM academic_years
                ORDER BY start_date DESC
                """
            )
            return [_to_year(r) for r in fetchall(cur)]

    def create_year(self, *, name: str, start_date: date, end_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO academic_years(name, start_date, end_date, is_active) VALUES(%s,%s,%s,0)",
                (name, start_date, end_date),
            )
            return int(cur.lastrowid)

    # -------- Semesters --------
    def get_semester(self, semester_id: int) -> Optional[Semester]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT semester_id, academic_year_id, name, is_active FROM semesters WHERE semester_id=%s",
                (int(semester_id),),
            )
            r = fetchone(cur)
            return _to_semester(r) if r else None

    def find_semester(self, *, academic_year_id: int, name: str) -> Optional[Semester]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT semester_id, academic_year_id, name, is_active
                FROM semesters
                WHERE academic_year_id=%s AND name=%s
                """,
                (int(academic_year_id), name),
            )
            r = fetchone(cur)
            return _to_semester(r) if r else None

    def list_semesters(self, academic_year_id: int) -> Sequence[Semester]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT semester_id, academic_year_id, name, is_active
                FROM semesters
                WHERE academic_year_id=%s
                ORDER BY semester_id ASC
                """,
                (int(academic_year_id),),
            )
            return [_to_semester(r) for r in fetchall(cur)]

    def create_semester(self, *, academic_year_id: int, name: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO semesters(academic_year_id, name, is_active) VALUES(%s,%s,0)",
                (int(academic_year_id), name),
            )
            return int(cur.lastrowid)

    # -------- Active term pointer --------
    def get_active_term(self) -> ActiveTerm:
        # Single statement: one consistent snapshot of pointer and flags.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.active_academic_year_id, s.active_semester_id
                FROM settings s
                WHERE s.setting_id=%s
                """,
                (SETTINGS_ROW_ID,),
            )
            r = fetchone(cur)
            if not r:
                return ActiveTerm()
            return ActiveTerm(
                academic_year_id=_opt_int(r.get("active_academic_year_id")),
                semester_id=_opt_int(r.get("active_semester_id")),
            )

    def _lock_settings(self, cur) -> dict:
        # First activation creates the row; every later one locks it so that
        # concurrent activations serialize on it.
        cur.execute("INSERT IGNORE INTO settings(setting_id) VALUES(%s)", (SETTINGS_ROW_ID,))
        cur.execute(
            """
            SELECT active_academic_year_id, active_semester_id
            FROM settings
            WHERE setting_id=%s
            FOR UPDATE
            """,
            (SETTINGS_ROW_ID,),
        )
        return fetchone(cur) or {}

    def activate_year(self, academic_year_id: int) -> ActiveTerm:
        year_id = int(academic_year_id)
        with db_cursor(self._conn_factory) as (_, cur):
            current = self._lock_settings(cur)

            cur.execute("SELECT academic_year_id FROM academic_years WHERE academic_year_id=%s FOR UPDATE", (year_id,))
            if not fetchone(cur):
                raise NotFoundError("Academic year not found")

            semester_id = _opt_int(current.get("active_semester_id"))
            if semester_id is not None:
                cur.execute("SELECT academic_year_id FROM semesters WHERE semester_id=%s", (semester_id,))
                sem = fetchone(cur)
                if not sem or int(sem["academic_year_id"]) != year_id:
                    semester_id = None

            cur.execute("UPDATE academic_years SET is_active = (academic_year_id = %s)", (year_id,))
            if semester_id is None:
                cur.execute("UPDATE semesters SET is_active = 0 WHERE is_active = 1")
            cur.execute(
                """
                UPDATE settings
                SET active_academic_year_id=%s, active_semester_id=%s
                WHERE setting_id=%s
                """,
                (year_id, semester_id, SETTINGS_ROW_ID),
            )
            return ActiveTerm(academic_year_id=year_id, semester_id=semester_id)

    def activate_term(self, academic_year_id: int, semester_id: int) -> ActiveTerm:
        year_id = int(academic_year_id)
        sem_id = int(semester_id)
        with db_cursor(self._conn_factory) as (_, cur):
            self._lock_settings(cur)

            cur.execute("SELECT academic_year_id FROM academic_years WHERE academic_year_id=%s FOR UPDATE", (year_id,))
            if not fetchone(cur):
                raise NotFoundError("Academic year not found")
            cur.execute("SELECT academic_year_id FROM semesters WHERE semester_id=%s FOR UPDATE", (sem_id,))
            sem = fetchone(cur)
            if not sem:
                raise NotFoundError("Semester not found")
            if int(sem["academic_year_id"]) != year_id:
                raise InvalidRelationError("Semester does not belong to this academic year")

            cur.execute("UPDATE academic_years SET is_active = (academic_year_id = %s)", (year_id,))
            cur.execute("UPDATE semesters SET is_active = (semester_id = %s)", (sem_id,))
            cur.execute(
                """
                UPDATE settings
                SET active_academic_year_id=%s, active_semester_id=%s
                WHERE setting_id=%s
                """,
                (year_id, sem_id, SETTINGS_ROW_ID),
            )
            return ActiveTerm(academic_year_id=year_id, semester_id=sem_id)


def _opt_int(value) -> Optional[int]:
    return int(value) if value is not None else None
