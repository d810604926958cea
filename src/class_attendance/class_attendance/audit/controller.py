from __future__ import annotations

from flask import Flask, jsonify, request

from ..auth.capabilities import require
from ..common.http import current_capabilities, to_json
from ..container import Container
from ..core.constants import DEFAULT_LIST_LIMIT


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/audit-logs", methods=["GET"], endpoint="admin_audit_logs")
    def admin_audit_logs():
        caps = current_capabilities()
        require(caps.can_view_audit_log)

        entity = (request.args.get("entity") or "").strip() or None
        limit = min(request.args.get("limit", DEFAULT_LIST_LIMIT, type=int), DEFAULT_LIST_LIMIT)
        rows = container.audit_service.list_recent(entity=entity, limit=limit)
        return jsonify({"auditLogs": [to_json(r) for r in rows]})
