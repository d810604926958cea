from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..auth.capabilities import CapabilitySet, Principal
from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConcurrencyConflictError,
    DomainError,
    InvalidTokenError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


class AuthenticationRequired(DomainError):
    """No principal in the session."""


def current_principal() -> Principal:
    """Principal from the session populated by the login collaborator."""
    user_id = session.get("user_id")
    role = session.get("role")
    if not user_id or not role:
        raise AuthenticationRequired("Login required")
    try:
        return Principal(user_id=int(user_id), role=Role(role), full_name=session.get("name"))
    except ValueError:
        raise AuthenticationRequired("Login required")


def current_capabilities() -> CapabilitySet:
    return CapabilitySet.for_principal(current_principal())


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def to_json(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {k: to_json(v) for k, v in asdict(value).items()}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AuthenticationRequired)
    def _unauthenticated(e: AuthenticationRequired):
        return jsonify({"ok": False, "error": str(e)}), 401

    @app.errorhandler(AuthorizationError)
    def _forbidden(e: AuthorizationError):
        return jsonify({"ok": False, "error": str(e) or "Forbidden"}), 403

    @app.errorhandler(NotFoundError)
    def _not_found(e: NotFoundError):
        return jsonify({"ok": False, "error": str(e)}), 404

    @app.errorhandler(ConcurrencyConflictError)
    def _conflict(e: ConcurrencyConflictError):
        return jsonify({"ok": False, "error": str(e)}), 409

    @app.errorhandler(InvalidTokenError)
    def _invalid_token(e: InvalidTokenError):
        logger.warning("Attendance token rejected: %s: %s", type(e).__name__, e)
        return jsonify({"ok": False, "error": e.public_message}), 400

    @app.errorhandler(DomainError)
    def _domain(e: DomainError):
        return jsonify({"ok": False, "error": str(e)}), 400

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return jsonify({"ok": False, "error": e.description}), e.code
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"ok": False, "error": "Internal server error"}), 500
