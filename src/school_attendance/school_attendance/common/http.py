from __future__ import annotations

import logging
from datetime import date
from functools import wraps
from typing import Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    MatchAmbiguous,
    PersistenceError,
    SessionStateError,
    UnknownSession,
    UnknownStudent,
    UnknownSubject,
    ValidationError,
)
from ..users.model import SessionUser
from ..users.service import require_role
from .datetime_utils import now_local, parse_iso_date

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (UnknownStudent, 404),
    (UnknownSubject, 404),
    (UnknownSession, 404),
    (SessionStateError, 409),
    (MatchAmbiguous, 409),
    (PersistenceError, 503),
)


def status_for(exc: DomainError) -> int:
    for exc_type, status in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status
    return 400


def error_response(exc: DomainError):
    status = status_for(exc)
    if status >= 500:
        logger.warning("Request %s %s failed: %s", request.method, request.path, exc)
    return jsonify({"success": False, "error": type(exc).__name__, "message": str(exc)}), status


def current_user() -> Optional[SessionUser]:
    if "user_id" not in session:
        return None
    return SessionUser(
        user_id=str(session["user_id"]),
        name=str(session.get("name") or ""),
        email=str(session.get("email") or ""),
        role=Role(session.get("role") or Role.SUBJECT.value),
    )


def login_required(view):
    return roles_required(*Role)(view)


def roles_required(*roles: Role):
    """Admins pass every role check."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                require_role(current_user(), roles)
            except DomainError as e:
                return error_response(e)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def date_arg(name: str = "date") -> date:
    raw = request.args.get(name)
    if not raw:
        return now_local().date()
    try:
        return parse_iso_date(raw)
    except ValueError:
        raise ValidationError(f"{name} must be YYYY-MM-DD") from None


def list_arg(name: str) -> list[str]:
    values: list[str] = []
    for raw in request.args.getlist(name):
        values.extend(v.strip() for v in raw.split(",") if v.strip())
    return values
