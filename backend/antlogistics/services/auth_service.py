# Overview: Service-layer operations for auth; credential verification and login.

"""
Operator Authentication Service

Every stock movement is attributable to an operator, so login has to be
trustworthy and must not leak information.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, 12 by default)
- Verification goes through bcrypt.checkpw (constant-time compare)
- Unknown usernames still pay for one bcrypt check, so timing does not tell
  "no such user" apart from "wrong password"
- Failures come back as LoginResult(success=False), never as an exception;
  the reason only appears in the server log
- Session artifacts are issued by session_service.py
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache

import bcrypt
from sqlalchemy.orm import Session

from ..models import Operator
from ..time_utils import to_utc_z, utcnow
from .session_service import SessionService

logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 12


def hash_password(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash password using bcrypt. Strength rules live in validation.enforce_rules_operator."""
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise. A malformed stored
    hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    # Same cost as real hashes, or the unknown-user path is measurably faster
    return hash_password("not-a-real-password", rounds)


@dataclass(frozen=True)
class LoginResult:
    success: bool
    username: str | None = None
    session_artifact: str | None = None
    expires_at: datetime | None = None

    def to_dict(self) -> dict:
        # The artifact itself travels in the HTTP-only cookie, not in the body
        return {
            "success": self.success,
            "username": self.username,
            "expiresAt": to_utc_z(self.expires_at),
        }


FAILED_LOGIN = LoginResult(success=False)


class AuthService:
    def __init__(
        self,
        session: Session,
        sessions: SessionService,
        bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS,
    ):
        self.session = session
        self.sessions = sessions
        self.bcrypt_rounds = bcrypt_rounds

    def authenticate(
        self,
        username: str | None,
        password: str | None,
        *,
        client_ip: str | None = None,
        user_agent: str | None = None,
    ) -> LoginResult:
        """
        Anonymous -> Authenticating -> Authenticated | Anonymous.

        On success: last_login_at is stamped, a session row is persisted and a
        signed artifact is returned. On failure: FAILED_LOGIN, whatever the cause.
        """
        if not username or not username.strip() or not password:
            return FAILED_LOGIN

        normalized = username.strip().lower()

        operator = (
            self.session.query(Operator)
            .filter(Operator.username == normalized, Operator.is_active.is_(True))
            .first()
        )

        if operator is None:
            verify_password(password, _dummy_hash(self.bcrypt_rounds))
            logger.warning("Failed login for %s: unknown or inactive operator", normalized)
            return FAILED_LOGIN

        if not verify_password(password, operator.password_hash):
            logger.warning("Failed login for %s: bad password", normalized)
            return FAILED_LOGIN

        operator.last_login_at = utcnow()
        issued = self.sessions.issue_session(operator, client_ip=client_ip, user_agent=user_agent)

        logger.info("Operator %s logged in", normalized)
        return LoginResult(
            success=True,
            username=operator.username,
            session_artifact=issued.artifact,
            expires_at=issued.expires_at,
        )
