from __future__ import annotations

from typing import Optional

from ..core.exceptions import ConcurrencyConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, is_duplicate_key
from .model import TokenLogEntry
from .repository import TokenLogRepository


class MySQLTokenLogRepository(TokenLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(self, entry: TokenLogEntry) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO token_logs(uuid, student_id, academic_year_id, semester_id, issued_at, is_revoked)
                    VALUES(%s,%s,%s,%s,%s,0)
                    """,
                    (
                        entry.uuid,
                        entry.student_id,
                        int(entry.academic_year_id),
                        int(entry.semester_id),
                        entry.issued_at.replace(tzinfo=None),
                    ),
                )
        except Exception as e:
            if is_duplicate_key(e):
                raise ConcurrencyConflictError("Token nonce collision") from e
            raise

    def find_live(
        self,
        *,
        uuid: str,
        student_id: str,
        academic_year_id: int,
        semester_id: int,
    ) -> Optional[TokenLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT uuid, student_id, academic_year_id, semester_id, issued_at, is_revoked, revoked_at
                FROM token_logs
                WHERE uuid=%s AND student_id=%s AND academic_year_id=%s AND semester_id=%s AND is_revoked=0
                """,
                (uuid, student_id, int(academic_year_id), int(semester_id)),
            )
            r = fetchone(cur)
            if not r:
                return None
            return TokenLogEntry(
                uuid=r["uuid"],
                student_id=r["student_id"],
                academic_year_id=int(r["academic_year_id"]),
                semester_id=int(r["semester_id"]),
                issued_at=r["issued_at"],
                is_revoked=bool(r["is_revoked"]),
                revoked_at=r.get("revoked_at"),
            )

    def revoke(self, uuid: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE token_logs SET is_revoked=1, revoked_at=UTC_TIMESTAMP() WHERE uuid=%s AND is_revoked=0",
                (uuid,),
            )
            return cur.rowcount > 0
