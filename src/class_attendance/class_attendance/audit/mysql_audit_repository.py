from __future__ import annotations

import json
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import AuditEntry
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, entry: AuditEntry) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(actor_user_id, actor_role, action, entity, entity_id, metadata)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(entry.actor_user_id),
                    entry.actor_role,
                    entry.action,
                    entry.entity,
                    entry.entity_id,
                    json.dumps(entry.metadata or {}, default=str),
                ),
            )

    def list_recent(self, *, entity: Optional[str] = None, limit: int = 200) -> Sequence[AuditEntry]:
        clauses = ["1=1"]
        params: list[object] = []
        if entity is not None:
            clauses.append("entity=%s")
            params.append(entity)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT actor_user_id, actor_role, action, entity, entity_id, metadata, created_at
                FROM audit_logs
                WHERE {where}
                ORDER BY created_at DESC, audit_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [
                AuditEntry(
                    actor_user_id=int(r["actor_user_id"]),
                    actor_role=r["actor_role"],
                    action=r["action"],
                    entity=r["entity"],
                    entity_id=r.get("entity_id"),
                    metadata=json.loads(r["metadata"]) if r.get("metadata") else {},
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]
