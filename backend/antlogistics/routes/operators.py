# Overview: Flask API routes for operator accounts (admin only); parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..extensions import db
from ..models import OperatorRole
from ..services.operator_service import DEFAULT_IDLE_TIMEOUT_MINUTES, OperatorService
from ..validation import ValidationError
from .query_params import bool_arg

operators_bp = Blueprint("operators", __name__, url_prefix="/api/v1/operators")


def _operator_service() -> OperatorService:
    return OperatorService(db.session, bcrypt_rounds=current_app.config["BCRYPT_ROUNDS"])


@operators_bp.post("")
@require_auth
@require_role(OperatorRole.ADMIN)
def create_operator_route():
    """
    Create an operator.

    Body: username, password, fullName, role ("operator" | "admin"),
    idleTimeoutMinutes (5-180, default 30), isActive.

    The password never goes through validate_payload: it is not a column.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")

    allowed = {"username", "password", "fullName", "role", "idleTimeoutMinutes", "isActive"}
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ValidationError(f"Field not allowed: {unknown[0]}")

    password = data.get("password")
    if not isinstance(password, str):
        raise ValidationError("password is required")

    operator = _operator_service().create_operator(
        username=data.get("username"),
        password=password,
        full_name=data.get("fullName"),
        role=data.get("role"),
        idle_timeout_minutes=data.get("idleTimeoutMinutes", DEFAULT_IDLE_TIMEOUT_MINUTES),
        is_active=data.get("isActive", True) is not False,
    )
    return jsonify(operator.to_dict()), 201


@operators_bp.get("")
@require_auth
@require_role(OperatorRole.ADMIN)
def list_operators_route():
    operators = _operator_service().list_operators(include_inactive=bool_arg("includeInactive"))
    return jsonify([o.to_dict() for o in operators]), 200


@operators_bp.post("/<operator_id>/deactivate")
@require_auth
@require_role(OperatorRole.ADMIN)
def deactivate_operator_route(operator_id: str):
    operator = _operator_service().deactivate_operator(operator_id)
    return jsonify(operator.to_dict()), 200
