from __future__ import annotations

from datetime import date

from flask import Flask, jsonify, request

from ..auth.capabilities import require
from ..common.datetime_utils import parse_iso_date
from ..common.http import current_capabilities, json_body, to_json
from ..common.validators import require_positive_id
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/teacher/scan", methods=["POST"], endpoint="teacher_scan")
    def teacher_scan():
        caps = current_capabilities()
        require(caps.can_scan_attendance)
        body = json_body()

        schedule = container.override_service.get_schedule(require_positive_id(body.get("scheduleId"), "Schedule"))
        require(caps.can_record_scan(schedule), "Schedule not assigned to you")

        record = container.attendance_recorder.record_scan(
            caps.principal,
            body.get("token"),
            schedule.schedule_id,
            note=body.get("note"),
        )
        return jsonify({"ok": True, "record": to_json(record)})

    @app.route("/api/teacher/schedules/<int:schedule_id>/attendance", methods=["GET"], endpoint="teacher_schedule_attendance")
    def teacher_schedule_attendance(schedule_id: int):
        caps = current_capabilities()
        schedule = container.override_service.get_schedule(schedule_id)
        require(caps.can_record_scan(schedule), "Schedule not assigned to you")

        date_s = request.args.get("date")
        on_date = parse_iso_date(date_s) if date_s else date.today()
        rows = container.attendance_recorder.list_for_schedule(schedule.schedule_id, on_date)
        return jsonify({"records": [to_json(r) for r in rows]})
