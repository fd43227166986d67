# backend/antlogistics/audit.py
"""
Entity audit policy.

Timestamps are assigned here and only here:
- on create: created_at = updated_at = now
- on modify: updated_at = now (created_at untouched)
- StockRecord on create: created_at = now, and occurred_at = created_at unless
  the caller backdated it explicitly

The policy runs as a SQLAlchemy before_flush listener, so the stamps are part
of the same flush (and transaction) as the row mutation they describe: both
commit or both roll back.

It also guards the lifecycle rules that live below the services:
- stock records are append-only (no update, no delete)
- master data (warehouses, commodities, operators) is soft-deleted only
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import event
from sqlalchemy.orm import Session

from .models import Commodity, Operator, StockRecord, Warehouse
from .time_utils import utcnow
from .validation import ValidationError

AUDITED_MODELS = (Warehouse, Commodity, Operator)
NEVER_DELETED = (Warehouse, Commodity, Operator, StockRecord)


def on_create(entity, now: datetime | None = None) -> None:
    now = now or utcnow()
    entity.created_at = now
    if isinstance(entity, StockRecord):
        if entity.occurred_at is None:
            entity.occurred_at = entity.created_at
        return
    entity.updated_at = now


def on_modify(entity, now: datetime | None = None) -> None:
    entity.updated_at = now or utcnow()


def _stamp_session(session: Session) -> None:
    now = utcnow()

    for obj in session.new:
        if isinstance(obj, AUDITED_MODELS) or isinstance(obj, StockRecord):
            on_create(obj, now)

    for obj in session.dirty:
        # Collection changes from backrefs don't count as a modification
        if not session.is_modified(obj, include_collections=False):
            continue
        if isinstance(obj, StockRecord):
            raise ValidationError("stock records are append-only")
        if isinstance(obj, AUDITED_MODELS):
            on_modify(obj, now)

    for obj in session.deleted:
        if isinstance(obj, StockRecord):
            raise ValidationError("stock records are append-only")
        if isinstance(obj, NEVER_DELETED):
            raise ValidationError(f"{type(obj).__name__} rows are deactivated, never deleted")


def _before_flush(session, flush_context, instances) -> None:
    _stamp_session(session)


def install_audit_policy() -> None:
    """Attach the policy to every ORM session. Safe to call more than once."""
    if not event.contains(Session, "before_flush", _before_flush):
        event.listen(Session, "before_flush", _before_flush)
