# Overview: Service-layer operations for operator sessions; issue, validate and revoke.

"""
Session Artifact Management

The artifact is a signed JWT (HS256) carried in an HTTP-only, SameSite=Lax
cookie. Claims: sub (normalized username), jti (session token id), iat, exp,
iss, aud. Each artifact is backed by an OperatorSession row keyed by jti, so
logout revokes it immediately instead of waiting for exp.

A request is authenticated only if ALL hold:
- signature, issuer, audience and exp check out (exp with clock-skew leeway)
- the session row exists and is not revoked or past expires_at
- the operator is active and still owns the username in sub
- the session was seen within the operator's idle timeout

Anything else is "unauthenticated". Validation never raises for a bad
artifact; it returns SessionCheck(authenticated=False).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from ..models import Operator, OperatorSession
from ..time_utils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSettings:
    secret_key: str
    issuer: str = "AntLogistics"
    audience: str = "AntLogisticsClients"
    algorithm: str = "HS256"
    ttl: timedelta = timedelta(minutes=30)
    clock_skew: timedelta = timedelta(minutes=2)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "SessionSettings":
        return cls(
            secret_key=config["SECRET_KEY"],
            issuer=config["JWT_ISSUER"],
            audience=config["JWT_AUDIENCE"],
            algorithm=config["JWT_ALGORITHM"],
            ttl=timedelta(minutes=config["SESSION_TTL_MINUTES"]),
            clock_skew=timedelta(seconds=config["SESSION_CLOCK_SKEW_SECONDS"]),
        )


@dataclass(frozen=True)
class IssuedSession:
    record: OperatorSession
    artifact: str
    expires_at: datetime


@dataclass(frozen=True)
class SessionCheck:
    authenticated: bool
    username: str | None = None
    operator: Operator | None = None

    def to_dict(self) -> dict:
        return {"authenticated": self.authenticated, "username": self.username}


ANONYMOUS = SessionCheck(authenticated=False)


def _epoch(dt: datetime) -> int:
    return int(dt.replace(tzinfo=timezone.utc).timestamp())


def revoke_sessions_for_operator(
    session: Session, operator_id: str, reason: str, now: datetime | None = None
) -> int:
    """Mark every live session of an operator revoked. Caller commits."""
    now = now or utcnow()
    live = (
        session.query(OperatorSession)
        .filter(OperatorSession.operator_id == operator_id, OperatorSession.revoked_at.is_(None))
        .all()
    )
    for record in live:
        record.revoked_at = now
        record.revoked_reason = reason
    return len(live)


class SessionService:
    def __init__(self, session: Session, settings: SessionSettings):
        self.session = session
        self.settings = settings

    def issue_session(
        self,
        operator: Operator,
        *,
        client_ip: str | None = None,
        user_agent: str | None = None,
    ) -> IssuedSession:
        """Persist a session row and sign an artifact for it. Commits."""
        now = utcnow()
        expires_at = now + self.settings.ttl

        record = OperatorSession(
            operator_id=operator.id,
            issued_at=now,
            last_seen_at=now,
            expires_at=expires_at,
            client_ip=client_ip,
            user_agent=(user_agent or "")[:512] or None,
        )
        self.session.add(record)
        self.session.flush()  # session_token default is assigned at flush

        claims = {
            "sub": operator.username,
            "jti": record.session_token,
            "iat": _epoch(now),
            "exp": _epoch(expires_at),
            "iss": self.settings.issuer,
            "aud": self.settings.audience,
        }
        artifact = jwt.encode(claims, self.settings.secret_key, algorithm=self.settings.algorithm)

        self.session.commit()
        return IssuedSession(record=record, artifact=artifact, expires_at=expires_at)

    def _decode(self, artifact: str, *, verify_exp: bool = True) -> dict | None:
        try:
            return jwt.decode(
                artifact,
                self.settings.secret_key,
                algorithms=[self.settings.algorithm],
                audience=self.settings.audience,
                issuer=self.settings.issuer,
                options={
                    "verify_exp": verify_exp,
                    "leeway": int(self.settings.clock_skew.total_seconds()),
                },
            )
        except JWTError as exc:
            logger.info("Rejected session artifact: %s", exc)
            return None

    def _find(self, claims: dict) -> OperatorSession | None:
        token = claims.get("jti")
        if not token:
            return None
        return (
            self.session.query(OperatorSession)
            .filter(OperatorSession.session_token == token)
            .first()
        )

    def validate_session(self, artifact: str | None) -> SessionCheck:
        if not artifact:
            return ANONYMOUS

        claims = self._decode(artifact)
        if claims is None:
            return ANONYMOUS

        record = self._find(claims)
        if record is None or record.is_revoked:
            return ANONYMOUS

        now = utcnow()
        if record.expires_at + self.settings.clock_skew < now:
            return ANONYMOUS

        operator = record.operator
        if operator is None or operator.username != claims.get("sub"):
            return ANONYMOUS

        if not operator.is_active:
            self._revoke(record, "operator deactivated", now)
            return ANONYMOUS

        idle_limit = timedelta(minutes=operator.idle_timeout_minutes)
        if now - record.last_seen_at > idle_limit:
            self._revoke(record, "idle timeout", now)
            logger.info("Session for %s revoked after idle timeout", operator.username)
            return ANONYMOUS

        record.last_seen_at = now
        self.session.commit()
        return SessionCheck(authenticated=True, username=operator.username, operator=operator)

    def _revoke(self, record: OperatorSession, reason: str, now: datetime) -> None:
        record.revoked_at = now
        record.revoked_reason = reason
        self.session.commit()

    def logout(self, artifact: str | None) -> None:
        """
        Revoke the session behind the artifact. Unknown, forged or already
        revoked artifacts are a silent no-op; an expired but genuine one is
        still revoked.
        """
        if not artifact:
            return
        claims = self._decode(artifact, verify_exp=False)
        if claims is None:
            return
        record = self._find(claims)
        if record is None or record.is_revoked:
            return
        self._revoke(record, "logout", utcnow())
        logger.info("Session %s revoked on logout", record.id)

    def revoke_operator_sessions(self, operator_id: str, reason: str) -> int:
        count = revoke_sessions_for_operator(self.session, operator_id, reason)
        self.session.commit()
        return count

    def cleanup_expired_sessions(self, older_than: timedelta = timedelta(days=30)) -> int:
        """
        Delete sessions that are expired or revoked AND were issued before the
        cutoff. Returns count deleted.
        """
        now = utcnow()
        cutoff = now - older_than
        deleted = (
            self.session.query(OperatorSession)
            .filter(
                (OperatorSession.expires_at < now) | OperatorSession.revoked_at.isnot(None),
                OperatorSession.issued_at < cutoff,
            )
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted
