from __future__ import annotations

from datetime import date

from flask import Flask, jsonify, request

from ..auth.capabilities import require
from ..common.datetime_utils import parse_hhmm, parse_iso_date
from ..common.http import current_capabilities, current_principal, json_body, to_json
from ..common.validators import require_positive_id
from ..core.enums import OverrideStatus
from ..core.exceptions import ValidationError
from ..container import Container
from ..schedules.model import ScheduleOverride


def _override_row(o: ScheduleOverride) -> dict:
    return {
        "id": o.override_id,
        "scheduleId": o.schedule_id,
        "date": o.override_date.strftime("%Y-%m-%d"),
        "overrideType": o.override_type.value,
        "newStartTime": o.new_start_time.strftime("%H:%M") if o.new_start_time else None,
        "newEndTime": o.new_end_time.strftime("%H:%M") if o.new_end_time else None,
        "reason": o.reason,
        "status": o.status.value,
        "adminNotes": o.admin_notes,
        "createdAt": o.created_at.isoformat() if o.created_at else None,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/teacher/schedule-overrides", methods=["POST"], endpoint="teacher_override_propose")
    def teacher_override_propose():
        caps = current_capabilities()
        body = json_body()

        schedule = container.override_service.get_schedule(require_positive_id(body.get("scheduleId"), "Schedule"))
        require(caps.can_propose_override(schedule), "Schedule not assigned to you")

        override = container.override_service.propose(
            caps.principal,
            schedule_id=schedule.schedule_id,
            override_date=parse_iso_date(str(body.get("date") or "")),
            override_type=body.get("overrideType"),
            new_start_time=parse_hhmm(body.get("newStartTime")),
            new_end_time=parse_hhmm(body.get("newEndTime")),
            reason=body.get("reason"),
        )
        return jsonify({"ok": True, "override": _override_row(override)}), 201

    @app.route("/api/teacher/schedule-overrides", methods=["GET"], endpoint="teacher_overrides")
    def teacher_overrides():
        caps = current_capabilities()
        require(caps.can_review_own_overrides)
        rows = container.override_service.list_for_teacher(caps.principal.user_id)
        return jsonify({"overrides": [_override_row(o) for o in rows]})

    @app.route("/api/admin/schedule-overrides", methods=["GET"], endpoint="admin_overrides")
    def admin_overrides():
        caps = current_capabilities()
        require(caps.can_decide_override)

        status_s = (request.args.get("status") or "").strip().upper()
        try:
            status = OverrideStatus(status_s) if status_s else None
        except ValueError:
            raise ValidationError("Unknown status filter")

        rows = container.override_service.list_all(status=status)
        return jsonify({"overrides": [_override_row(o) for o in rows]})

    @app.route("/api/admin/schedule-overrides/<int:override_id>", methods=["PUT"], endpoint="admin_override_decide")
    def admin_override_decide(override_id: int):
        caps = current_capabilities()
        require(caps.can_decide_override)
        body = json_body()

        override = container.override_service.decide(
            caps.principal,
            override_id=override_id,
            status=str(body.get("status") or "").upper(),
            admin_notes=body.get("adminNotes"),
        )
        return jsonify({"ok": True, "override": _override_row(override)})

    @app.route("/api/schedules/<int:schedule_id>/effective", methods=["GET"], endpoint="schedule_effective")
    def schedule_effective(schedule_id: int):
        current_principal()
        date_s = request.args.get("date")
        on_date = parse_iso_date(date_s) if date_s else date.today()

        window = container.override_service.resolve_effective(schedule_id, on_date)
        payload = to_json(window)
        payload["isCancelled"] = window.is_cancelled
        return jsonify(payload)
