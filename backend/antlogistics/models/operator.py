from __future__ import annotations

import enum

from sqlalchemy.orm import validates

from ..extensions import db
from ..normalization import normalize_identifier
from ..time_utils import to_utc_z
from ..validation import ValidationError
from ._ids import new_id


class OperatorRole(str, enum.Enum):
    """Closed set of roles. Authorization is a membership test on this tag."""

    OPERATOR = "operator"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: "OperatorRole | str | None") -> "OperatorRole":
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.OPERATOR
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(r.value for r in cls)
            raise ValidationError(f"role must be one of: {allowed}")


class Operator(db.Model):
    """
    System operator account.

    Username is unique and always lower case. The password is only ever held as
    a bcrypt hash. idle_timeout_minutes bounds how long a session may sit unused
    before it is revoked (5-180 minutes).
    """
    __tablename__ = "operators"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_operators_username"),
        db.CheckConstraint(
            "idle_timeout_minutes BETWEEN 5 AND 180",
            name="ck_operators_idle_timeout_range",
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    username = db.Column(db.String(100), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(200), nullable=False)
    role = db.Column(
        db.Enum(
            OperatorRole,
            name="operator_role",
            native_enum=False,
            values_callable=lambda roles: [r.value for r in roles],
        ),
        nullable=False,
        default=OperatorRole.OPERATOR,
    )
    idle_timeout_minutes = db.Column(db.Integer, nullable=False, default=30)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False)

    @validates("username")
    def _normalize_username(self, key, value):
        return normalize_identifier(value, "username")

    @property
    def is_admin(self) -> bool:
        return self.role == OperatorRole.ADMIN

    def __repr__(self) -> str:
        return f"<Operator id={self.id} username={self.username!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "fullName": self.full_name,
            "role": self.role.value if self.role else None,
            "idleTimeoutMinutes": self.idle_timeout_minutes,
            "isActive": self.is_active,
            "lastLoginAt": to_utc_z(self.last_login_at),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class OperatorSession(db.Model):
    """
    Server-side record of an issued session artifact.

    session_token is the token identifier (JWT "jti") embedded in the signed
    cookie value. The row is what makes logout revocation effective before
    the artifact's own expiry.
    """
    __tablename__ = "operator_sessions"
    __table_args__ = (
        db.UniqueConstraint("session_token", name="uq_operator_sessions_token"),
        db.Index("ix_operator_sessions_operator_revoked", "operator_id", "revoked_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    operator_id = db.Column(db.String(36), db.ForeignKey("operators.id"), nullable=False, index=True)
    session_token = db.Column(db.String(36), nullable=False, default=new_id)

    issued_at = db.Column(db.DateTime, nullable=False)
    last_seen_at = db.Column(db.DateTime, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)

    revoked_at = db.Column(db.DateTime, nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    client_ip = db.Column(db.String(45), nullable=True)  # IPv6 max length
    user_agent = db.Column(db.String(512), nullable=True)

    operator = db.relationship("Operator", backref=db.backref("sessions", lazy=True))

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "operatorId": self.operator_id,
            "issuedAt": to_utc_z(self.issued_at),
            "lastSeenAt": to_utc_z(self.last_seen_at),
            "expiresAt": to_utc_z(self.expires_at),
            "revokedAt": to_utc_z(self.revoked_at),
            "revokedReason": self.revoked_reason,
        }
