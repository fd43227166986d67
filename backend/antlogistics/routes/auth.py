# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

SECURITY FEATURES:
- The session artifact is only ever handed out as an HTTP-only,
  SameSite=Lax cookie (Secure outside development)
- Failed logins return one generic message, whatever the cause
- Logout revokes the server-side session, not just the cookie
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, session_artifact_from_request, session_service
from ..extensions import db
from ..services.auth_service import AuthService


auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


def _set_session_cookie(response, artifact: str) -> None:
    config = current_app.config
    response.set_cookie(
        config["AUTH_COOKIE_NAME"],
        artifact,
        max_age=config["SESSION_TTL_MINUTES"] * 60,
        path="/",
        httponly=True,
        secure=config["AUTH_COOKIE_SECURE"],
        samesite="Lax",
    )


def _clear_session_cookie(response) -> None:
    config = current_app.config
    response.delete_cookie(
        config["AUTH_COOKIE_NAME"],
        path="/",
        httponly=True,
        secure=config["AUTH_COOKIE_SECURE"],
        samesite="Lax",
    )


@auth_bp.post("/login")
def login_route():
    """
    Authenticate an operator and start a session.

    Body: {"username": ..., "password": ...}
    200 -> {"success": true, "username": ..., "expiresAt": ...} plus the cookie
    200 -> {"success": false, "username": null, "expiresAt": null} on bad
           credentials, with no cookie and no hint which part was wrong
    """
    try:
        data = request.get_json(silent=True) or {}
        username = data.get("username")
        password = data.get("password")

        if not isinstance(username, str) or not isinstance(password, str):
            return jsonify({"success": False, "error": "username and password required"}), 400

        auth = AuthService(
            db.session, session_service(), bcrypt_rounds=current_app.config["BCRYPT_ROUNDS"]
        )
        result = auth.authenticate(
            username,
            password,
            client_ip=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )

        if not result.success:
            # A refused login is an answer, not an error
            return jsonify(result.to_dict()), 200

        response = jsonify(result.to_dict())
        _set_session_cookie(response, result.session_artifact)
        return response, 200

    except Exception:
        current_app.logger.exception("Failed to login operator")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Who is behind the current cookie. 401 (from require_auth) when nobody is."""
    operator = g.current_operator
    return jsonify({
        "authenticated": True,
        "username": operator.username,
        "operator": operator.to_dict(),
    }), 200


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke the current session and clear the cookie.

    Always 200: logging out without (or with a stale) session is a no-op.
    """
    try:
        session_service().logout(session_artifact_from_request())
        response = jsonify({"success": True})
        _clear_session_cookie(response)
        return response, 200

    except Exception:
        current_app.logger.exception("Failed to logout operator")
        return jsonify({"error": "Internal server error"}), 500
