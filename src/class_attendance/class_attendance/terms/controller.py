from __future__ import annotations

from flask import Flask, jsonify

from ..auth.capabilities import require
from ..common.datetime_utils import parse_iso_date
from ..common.http import current_capabilities, current_principal, json_body, to_json
from ..common.validators import require_positive_id
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def _admin():
        caps = current_capabilities()
        require(caps.can_activate_term)
        return caps.principal

    @app.route("/api/admin/academic-years", methods=["GET"], endpoint="admin_academic_years")
    def admin_academic_years():
        _admin()
        term = container.term_service.get_active_term()
        years = container.term_service.list_academic_years()
        return jsonify(
            {
                "academicYears": [to_json(y) for y in years],
                "activeAcademicYearId": term.academic_year_id,
                "activeSemesterId": term.semester_id,
            }
        )

    @app.route("/api/admin/academic-years", methods=["POST"], endpoint="admin_academic_years_create")
    def admin_academic_years_create():
        actor = _admin()
        body = json_body()
        year = container.term_service.create_academic_year(
            actor,
            name=str(body.get("name") or ""),
            start_date=parse_iso_date(str(body.get("startDate") or "")),
            end_date=parse_iso_date(str(body.get("endDate") or "")),
        )
        return jsonify({"ok": True, "academicYear": to_json(year)}), 201

    @app.route("/api/admin/academic-years/<int:academic_year_id>/semesters", methods=["GET"], endpoint="admin_semesters")
    def admin_semesters(academic_year_id: int):
        _admin()
        semesters = container.term_service.list_semesters(academic_year_id)
        return jsonify({"semesters": [to_json(s) for s in semesters]})

    @app.route(
        "/api/admin/academic-years/<int:academic_year_id>/semesters",
        methods=["POST"],
        endpoint="admin_semesters_create",
    )
    def admin_semesters_create(academic_year_id: int):
        actor = _admin()
        body = json_body()
        semester = container.term_service.create_semester(
            actor,
            academic_year_id=academic_year_id,
            name=str(body.get("name") or ""),
        )
        return jsonify({"ok": True, "semester": to_json(semester)}), 201

    @app.route(
        "/api/admin/academic-years/<int:academic_year_id>/activate",
        methods=["POST"],
        endpoint="admin_academic_year_activate",
    )
    def admin_academic_year_activate(academic_year_id: int):
        actor = _admin()
        term = container.term_service.activate_year(actor, academic_year_id=academic_year_id)
        return jsonify({"ok": True, "activeTerm": to_json(term)})

    @app.route("/api/admin/semesters/<int:semester_id>/activate", methods=["POST"], endpoint="admin_semester_activate")
    def admin_semester_activate(semester_id: int):
        actor = _admin()
        term = container.term_service.activate_semester(actor, semester_id=semester_id)
        return jsonify({"ok": True, "activeTerm": to_json(term)})

    @app.route("/api/admin/activate-term", methods=["POST"], endpoint="admin_activate_term")
    def admin_activate_term():
        actor = _admin()
        body = json_body()
        term = container.term_service.activate_term(
            actor,
            academic_year_id=require_positive_id(body.get("academicYearId"), "Academic year"),
            semester_id=require_positive_id(body.get("semesterId"), "Semester"),
        )
        return jsonify({"ok": True, "activeTerm": to_json(term)})

    @app.route("/api/settings/active-term", methods=["GET"], endpoint="active_term")
    def active_term():
        current_principal()
        term = container.term_service.get_active_term()
        return jsonify({"activeAcademicYearId": term.academic_year_id, "activeSemesterId": term.semester_id})
