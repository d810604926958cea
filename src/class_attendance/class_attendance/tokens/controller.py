from __future__ import annotations

import io

from flask import Flask, jsonify, send_file

from ..auth.capabilities import require
from ..common.http import current_capabilities, current_principal, json_body
from ..container import Container
from .qr import render_png


def register(app: Flask, container: Container) -> None:
    @app.route("/api/student/token", methods=["POST"], endpoint="student_token")
    def student_token():
        caps = current_capabilities()
        require(caps.can_issue_own_token)
        token = container.token_service.issue(str(caps.principal.user_id))
        return jsonify({"ok": True, "token": token.to_wire()}), 201

    @app.route("/api/student/token/qr", methods=["GET"], endpoint="student_token_qr")
    def student_token_qr():
        caps = current_capabilities()
        require(caps.can_issue_own_token)
        token = container.token_service.issue(str(caps.principal.user_id))
        buf = io.BytesIO(render_png(token))
        return send_file(buf, mimetype="image/png")

    @app.route("/api/qr/generate", methods=["POST"], endpoint="qr_generate")
    def qr_generate():
        """Issue a token on behalf of a student (admin or teacher desk)."""
        caps = current_capabilities()
        require(caps.can_issue_for_students)
        body = json_body()
        token = container.token_service.issue(str(body.get("studentId") or ""))
        return jsonify({"ok": True, "token": token.to_wire()}), 201

    @app.route("/api/qr/verify", methods=["POST"], endpoint="qr_verify")
    def qr_verify():
        current_principal()
        token = container.token_service.verify(json_body())
        return jsonify(
            {
                "ok": True,
                "studentId": token.student_id,
                "academicYearId": token.academic_year_id,
                "semesterId": token.semester_id,
                "issuedAt": token.issued_at,
            }
        )

    @app.route("/api/admin/tokens/<token_uuid>/revoke", methods=["POST"], endpoint="admin_token_revoke")
    def admin_token_revoke(token_uuid: str):
        caps = current_capabilities()
        require(caps.can_revoke_tokens)
        revoked = container.token_service.revoke(token_uuid)
        return jsonify({"ok": True, "revoked": revoked})
