from __future__ import annotations

import logging
from dataclasses import fields, is_dataclass
from datetime import date, datetime, time
from enum import Enum
from functools import wraps
from typing import Any, Mapping, Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, BusinessRuleError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"type": "error", "message": "Please sign in to continue."}), 401
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"type": "error", "message": "Please sign in to continue."}), 401
            if session.get("role") not in allowed:
                return jsonify({"type": "error", "message": "You do not have access to this page."}), 403
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Optional[Role]:
    value = session.get("role")
    return Role(value) if value else None


def form_data() -> dict[str, Any]:
    """Submitted fields from either a JSON body or a classic form post."""

    if request.is_json:
        return dict(request.get_json(silent=True) or {})
    return request.form.to_dict()


def success(message: str, status: int = 200, **extra: Any):
    body = {"type": "success", "message": message}
    body.update(extra)
    return jsonify(body), status


def error_response(exc: Exception, *, fallback: str = "Something went wrong. Please try again."):
    """Translate a service exception into the JSON error shape used by all write actions."""

    if isinstance(exc, ValidationError):
        return jsonify({"type": "error", "message": str(exc), "field_errors": exc.field_errors}), 400
    if isinstance(exc, NotFoundError):
        return jsonify({"type": "error", "message": str(exc)}), 404
    if isinstance(exc, AuthorizationError):
        return jsonify({"type": "error", "message": str(exc)}), 403
    if isinstance(exc, BusinessRuleError):
        return jsonify({"type": "error", "message": str(exc)}), 400

    logger.exception("unhandled error on %s %s", request.method, request.path, exc_info=exc)
    return jsonify({"type": "error", "message": fallback}), 500


def to_json(value: Any) -> Any:
    """Plain JSON-ready structure from dataclasses, enums and date/time values."""

    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_json(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json(v) for v in value]
    return value
