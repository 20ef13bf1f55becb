"""Flask glue shared by the controllers: session guards, JSON replies, error mapping."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    LeaveBalanceExceededError,
    NotFoundError,
    ValidationError,
)
from ..storage.base import UploadedFile

logger = logging.getLogger(__name__)


def fail(message: str, status: int, **extra):
    return jsonify({"success": False, "message": message, **extra}), status


def ok(status: int = 200, **payload):
    return jsonify({"success": True, **payload}), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Please log in to continue", 401)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Please log in to continue", 401)
        if session.get("role") != Role.ADMIN.value:
            return fail("You don't have permission to do this", 403)
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session.get("role", Role.USER.value))


def json_body() -> dict:
    """Request payload: JSON body, or form fields for multipart uploads."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def uploaded_file(field: str = "file") -> Optional[UploadedFile]:
    f = request.files.get(field)
    if not f or not f.filename:
        return None
    return UploadedFile(stream=f.stream, filename=f.filename, content_type=f.mimetype)


def query_flag(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in ("1", "true", "yes", "on")


def as_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(LeaveBalanceExceededError)
    def handle_balance_exceeded(e: LeaveBalanceExceededError):
        return fail(
            str(e),
            409,
            remaining=e.remaining,
            excess_days=e.excess_days,
            salary_deduction=e.salary_deduction,
        )

    @app.errorhandler(ValidationError)
    def handle_validation(e: ValidationError):
        return fail(str(e), 400)

    @app.errorhandler(AuthenticationError)
    def handle_authentication(e: AuthenticationError):
        return fail(str(e), 401)

    @app.errorhandler(AuthorizationError)
    def handle_authorization(e: AuthorizationError):
        return fail(str(e), 403)

    @app.errorhandler(NotFoundError)
    def handle_not_found(e: NotFoundError):
        return fail(str(e), 404)

    @app.errorhandler(DomainError)
    def handle_domain(e: DomainError):
        return fail(str(e), 400)

    @app.errorhandler(HTTPException)
    def handle_http(e: HTTPException):
        return fail(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if app.config.get("DEBUG"):
            return fail(f"Internal server error: {e}", 500)
        return fail("Internal server error", 500)
