# Overview: Shared write helpers for the service layer.

"""
Unique keys are guarded twice:
- an advisory existence check in the service, for a friendly error
- the database unique constraint, which is the only real guarantee

Two concurrent creates with the same key can both pass the advisory check.
The loser then hits the constraint at commit; commit_new() turns that into
the same ConflictError the pre-check would have raised, so callers see one
error shape whichever guard fired.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..validation import ConflictError

logger = logging.getLogger(__name__)

# sqlite, postgres (psycopg2 pgcode), mysql phrasing
_UNIQUE_MARKERS = ("unique constraint", "unique failed", "duplicate key", "duplicate entry")


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == "23505":
        return True
    text = str(orig if orig is not None else exc).lower()
    return any(marker in text for marker in _UNIQUE_MARKERS)


def commit_new(session: Session, entity, *, conflict_message: str):
    """Insert entity in its own transaction, mapping unique violations to ConflictError."""
    session.add(entity)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        if is_unique_violation(exc):
            logger.warning("Unique constraint rejected insert: %s", conflict_message)
            raise ConflictError(conflict_message) from exc
        raise
    return entity
