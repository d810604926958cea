from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..auth.capabilities import Principal
from ..core.constants import DEFAULT_LIST_LIMIT
from .model import AuditEntry
from .repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditService:
    """Append-only audit sink.

    Never raises: a failed audit write is logged and the primary operation
    keeps its result.
    """

    def __init__(self, audit: AuditRepository):
        self._audit = audit

    def record(
        self,
        actor: Principal,
        *,
        action: str,
        entity: str,
        entity_id: Optional[Any] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        entry = AuditEntry(
            actor_user_id=int(actor.user_id),
            actor_role=actor.role.value,
            action=action,
            entity=entity,
            entity_id=str(entity_id) if entity_id is not None else None,
            metadata=dict(metadata or {}),
        )
        try:
            self._audit.append(entry)
        except Exception:
            logger.exception("Failed to write audit log [%s %s=%s]", action, entity, entry.entity_id)

    def list_recent(self, *, entity: Optional[str] = None, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[AuditEntry]:
        return self._audit.list_recent(entity=entity, limit=int(limit))
