# Overview: Request and role decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request

from .extensions import db
from .models import OperatorRole
from .services.session_service import SessionService, SessionSettings
from .validation import UnauthenticatedError


def session_service() -> SessionService:
    return SessionService(db.session, SessionSettings.from_config(current_app.config))


def session_artifact_from_request() -> str | None:
    """Cookie first; a Bearer header is accepted for non-browser clients."""
    artifact = request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])
    if artifact:
        return artifact
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return None


def require_auth(f):
    """
    Require a valid session.

    Sets:
    - g.current_operator: the authenticated Operator
    - g.session_check: the full SessionCheck

    SECURITY: Raises UnauthenticatedError (401) if the artifact is missing,
    forged, expired, revoked, idle past the operator's timeout, or the
    operator was deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        artifact = session_artifact_from_request()
        if not artifact:
            raise UnauthenticatedError("Authentication required")

        check = session_service().validate_session(artifact)
        if not check.authenticated:
            raise UnauthenticatedError("Invalid or expired session")

        g.current_operator = check.operator
        g.session_check = check
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: OperatorRole):
    """Role membership check. Must sit below @require_auth."""
    allowed = {OperatorRole.parse(r) for r in roles}

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            operator = getattr(g, "current_operator", None)
            if operator is None:
                return jsonify({"error": "Authentication required"}), 401
            if operator.role not in allowed:
                current_app.logger.warning(
                    "Operator %s denied %s %s (role %s)",
                    operator.username, request.method, request.path, operator.role.value,
                )
                return jsonify({"error": "Permission denied"}), 403
            return f(*args, **kwargs)

        return decorated_function
    return decorator
