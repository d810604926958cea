from __future__ import annotations

from datetime import date, time
from typing import Optional, Sequence

from ..core.enums import OverrideStatus, OverrideType
from ..core.exceptions import ConcurrencyConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key, normalize_mysql_time
from ..overrides.state import OverrideState, state_from_row
from .model import Schedule, ScheduleOverride
from .repository import ScheduleRepository

_OVERRIDE_COLUMNS = """
    o.override_id, o.schedule_id, o.override_date, o.override_type,
    o.new_start_time, o.new_end_time, o.reason, o.status, o.admin_notes,
    o.version, o.created_at, o.updated_at
"""


def _to_override(r: dict) -> ScheduleOverride:
    return ScheduleOverride(
        override_id=int(r["override_id"]),
        schedule_id=int(r["schedule_id"]),
        override_date=r["override_date"],
        override_type=OverrideType(r["override_type"]),
        new_start_time=normalize_mysql_time(r.get("new_start_time")),
        new_end_time=normalize_mysql_time(r.get("new_end_time")),
        reason=r.get("reason"),
        state=state_from_row(r["status"], r.get("admin_notes")),
        version=int(r["version"]),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_schedule(self, schedule_id: int) -> Optional[Schedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT sc.schedule_id, sc.subject_id, sub.teacher_user_id, sc.section_id,
                       sc.day_of_week, sc.start_time, sc.end_time, sc.room,
                       sc.academic_year_id, sc.semester_id
                FROM schedules sc
                JOIN subjects sub ON sub.subject_id = sc.subject_id
                WHERE sc.schedule_id=%s
                """,
                (int(schedule_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Schedule(
                schedule_id=int(r["schedule_id"]),
                subject_id=int(r["subject_id"]),
                teacher_user_id=int(r["teacher_user_id"]),
                section_id=int(r["section_id"]) if r.get("section_id") is not None else None,
                day_of_week=int(r["day_of_week"]),
                start_time=normalize_mysql_time(r["start_time"]),
                end_time=normalize_mysql_time(r["end_time"]),
                room=r.get("room"),
                academic_year_id=int(r["academic_year_id"]),
                semester_id=int(r["semester_id"]),
            )

    # -------- Overrides --------
    def get_override(self, override_id: int) -> Optional[ScheduleOverride]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_OVERRIDE_COLUMNS} FROM schedule_overrides o WHERE o.override_id=%s",
                (int(override_id),),
            )
            r = fetchone(cur)
            return _to_override(r) if r else None

    def find_override(self, *, schedule_id: int, override_date: date) -> Optional[ScheduleOverride]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_OVERRIDE_COLUMNS}
                FROM schedule_overrides o
                WHERE o.schedule_id=%s AND o.override_date=%s
                """,
                (int(schedule_id), override_date),
            )
            r = fetchone(cur)
            return _to_override(r) if r else None

    def find_approved_override(self, *, schedule_id: int, override_date: date) -> Optional[ScheduleOverride]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_OVERRIDE_COLUMNS}
                FROM schedule_overrides o
                WHERE o.schedule_id=%s AND o.override_date=%s AND o.status=%s
                """,
                (int(schedule_id), override_date, OverrideStatus.APPROVED.value),
            )
            r = fetchone(cur)
            return _to_override(r) if r else None

    def insert_override(
        self,
        *,
        schedule_id: int,
        override_date: date,
        override_type: OverrideType,
        new_start_time: Optional[time],
        new_end_time: Optional[time],
        reason: Optional[str],
        state: OverrideState,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO schedule_overrides(
                        schedule_id, override_date, override_type,
                        new_start_time, new_end_time, reason, status, admin_notes, version
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,1)
                    """,
                    (
                        int(schedule_id),
                        override_date,
                        override_type.value,
                        new_start_time,
                        new_end_time,
                        reason,
                        state.status.value,
                        state.admin_notes,
                    ),
                )
                return int(cur.lastrowid)
        except Exception as e:
            if is_duplicate_key(e):
                raise ConcurrencyConflictError("An override already exists for this schedule on this date") from e
            raise

    def resubmit_override(
        self,
        *,
        override_id: int,
        expected_version: int,
        override_type: OverrideType,
        new_start_time: Optional[time],
        new_end_time: Optional[time],
        reason: Optional[str],
        state: OverrideState,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE schedule_overrides
                SET override_type=%s, new_start_time=%s, new_end_time=%s, reason=%s,
                    status=%s, admin_notes=%s, version=version+1, updated_at=NOW()
                WHERE override_id=%s AND version=%s
                """,
                (
                    override_type.value,
                    new_start_time,
                    new_end_time,
                    reason,
                    state.status.value,
                    state.admin_notes,
                    int(override_id),
                    int(expected_version),
                ),
            )
            return cur.rowcount > 0

    def update_override_state(
        self,
        *,
        override_id: int,
        expected_version: int,
        state: OverrideState,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE schedule_overrides
                SET status=%s, admin_notes=%s, version=version+1, updated_at=NOW()
                WHERE override_id=%s AND version=%s
                """,
                (state.status.value, state.admin_notes, int(override_id), int(expected_version)),
            )
            return cur.rowcount > 0

    def list_overrides(
        self,
        *,
        status: Optional[OverrideStatus] = None,
        teacher_user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[ScheduleOverride]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("o.status=%s")
            params.append(status.value)
        if teacher_user_id is not None:
            clauses.append("sub.teacher_user_id=%s")
            params.append(int(teacher_user_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_OVERRIDE_COLUMNS}
                FROM schedule_overrides o
                JOIN schedules sc ON sc.schedule_id = o.schedule_id
                JOIN subjects sub ON sub.subject_id = sc.subject_id
                WHERE {where}
                ORDER BY o.created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_override(r) for r in fetchall(cur)]
