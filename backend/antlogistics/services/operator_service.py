# Overview: Service-layer operations for operator accounts; encapsulates business logic and database work.

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ..models import Operator, OperatorRole
from ..normalization import normalize_identifier
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    NotFoundError,
    enforce_column_limits,
    enforce_rules_operator,
    require_text,
)
from .auth_service import DEFAULT_BCRYPT_ROUNDS, hash_password
from .persistence import commit_new
from .session_service import revoke_sessions_for_operator

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT_MINUTES = 30


class OperatorService:
    def __init__(self, session: Session, bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.session = session
        self.bcrypt_rounds = bcrypt_rounds

    def create_operator(
        self,
        *,
        username: str,
        password: str,
        full_name: str,
        role: OperatorRole | str | None = None,
        idle_timeout_minutes: int = DEFAULT_IDLE_TIMEOUT_MINUTES,
        is_active: bool = True,
    ) -> Operator:
        """
        Create an operator account.

        Raises:
            ValidationError: blank or over-long username/full name, password shorter than
                8 characters or longer than 72 bytes, unknown role,
                idle timeout outside 5-180 minutes
            ConflictError: username already taken (case-insensitive)
        """
        username = normalize_identifier(require_text(username, "username"), "username")
        logger.info("Creating operator %s", username)

        full_name = require_text(full_name, "full_name")
        enforce_column_limits(Operator, {"username": username, "full_name": full_name})
        idle_timeout_minutes = enforce_rules_operator(
            password=password, idle_timeout_minutes=idle_timeout_minutes
        )
        role = OperatorRole.parse(role)

        if self.session.query(Operator.id).filter(Operator.username == username).first():
            logger.warning("Operator %s already exists", username)
            raise ConflictError("username exists")

        operator = Operator(
            username=username,
            password_hash=hash_password(password, self.bcrypt_rounds),
            full_name=full_name,
            role=role,
            idle_timeout_minutes=idle_timeout_minutes,
            is_active=bool(is_active),
        )

        commit_new(self.session, operator, conflict_message="username exists")
        logger.info("Created operator %s with role %s", operator.username, operator.role.value)
        return operator

    def get_operator(self, operator_id: str) -> Operator:
        operator = self.session.get(Operator, operator_id)
        if operator is None:
            raise NotFoundError("operator not found")
        return operator

    def get_operator_by_username(self, username: str) -> Operator:
        normalized = normalize_identifier(username, "username")
        operator = self.session.query(Operator).filter(Operator.username == normalized).first()
        if operator is None:
            raise NotFoundError("operator not found")
        return operator

    def list_operators(self, include_inactive: bool = False) -> list[Operator]:
        query = self.session.query(Operator)
        if not include_inactive:
            query = query.filter(Operator.is_active.is_(True))
        return query.order_by(Operator.username.asc()).all()

    def deactivate_operator(self, operator_id: str) -> Operator:
        """Soft delete; live sessions are revoked in the same transaction."""
        operator = self.get_operator(operator_id)
        if not operator.is_active:
            return operator

        operator.is_active = False
        revoked = revoke_sessions_for_operator(
            self.session, operator.id, "operator deactivated", utcnow()
        )
        self.session.commit()
        logger.info("Deactivated operator %s, revoked %d sessions", operator.username, revoked)
        return operator
