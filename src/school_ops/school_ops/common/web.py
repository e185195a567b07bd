from __future__ import annotations

from datetime import datetime, timedelta
from functools import wraps
from typing import Optional

from flask import Flask, g, jsonify, request, session

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from ..identity.model import Principal, SessionPolicy
from .datetime_utils import now_local

_STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (ConflictError, 409),
    (ValidationError, 400),
)


def http_status_for(error: DomainError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        return jsonify({"error": error.code, "message": error.message}), http_status_for(error)


def start_session(principal: Principal, policy: SessionPolicy) -> None:
    session.clear()
    session.permanent = policy.persistent
    session["principal"] = principal.to_dict()
    session["expires_at"] = (now_local() + policy.lifetime).isoformat()


def end_session() -> None:
    session.clear()


def current_principal() -> Optional[Principal]:
    data = session.get("principal")
    if not data:
        return None
    expires_at = session.get("expires_at")
    if expires_at and datetime.fromisoformat(expires_at) < now_local():
        session.clear()
        return None
    return Principal.from_dict(data)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        principal = current_principal()
        if principal is None:
            return jsonify({"error": "LOGIN_REQUIRED", "message": "Please log in to continue"}), 401
        g.principal = principal
        return view(*args, **kwargs)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def lifetime_seconds(lifetime: timedelta) -> int:
    return int(lifetime.total_seconds())
