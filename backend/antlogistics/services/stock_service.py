# Overview: Service-layer operations for stock records; encapsulates business logic and database work.

"""
Stock records: append-only inventory events.

Write path invariants:
- quantity > 0, with at most 3 decimal places (never rounded on the way in)
- warehouse and commodity must exist AND be active at write time
- operator_id, when given, must exist (inactive operators are fine: the event
  may be recorded after the operator left)
- sku / unit_of_measure are copied from the commodity (point-in-time snapshot)
- warehouse_zone falls back to the warehouse's default_zone

Read path:
- all filters optional, AND-combined
- occurred_at window is inclusive on both ends
- newest first (occurred_at desc, id desc as tiebreaker)
- limit defaults to DEFAULT_LIMIT and is capped at MAX_LIMIT
"""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from ..models import Commodity, Operator, StockRecord, Warehouse
from ..time_utils import to_utc_naive
from ..validation import (
    NotFoundError,
    enforce_column_limits,
    enforce_rules_stock,
    ensure_json_text,
    optional_text,
    to_decimal,
)

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
MAX_LIMIT = 1000

DEFAULT_CREATED_BY = "system"
DEFAULT_SOURCE = "manual"


def effective_limit(limit: int | None) -> int:
    if limit is None or limit <= 0:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


class StockService:
    def __init__(self, session: Session):
        self.session = session

    def create_stock_record(
        self,
        *,
        warehouse_id: str,
        commodity_id: str,
        quantity: Decimal | int | float | str,
        warehouse_zone: str | None = None,
        operator_id: str | None = None,
        created_by: str | None = None,
        source: str | None = None,
        occurred_at: datetime | None = None,
        metadata: Any = None,
    ) -> StockRecord:
        logger.info(
            "Creating stock record for warehouse %s and commodity %s", warehouse_id, commodity_id
        )

        quantity = to_decimal(quantity, "quantity")
        enforce_column_limits(StockRecord, {"quantity": quantity})
        enforce_rules_stock(quantity=quantity)
        metadata_json = ensure_json_text(metadata, "metadata")

        warehouse = (
            self.session.query(Warehouse)
            .filter(Warehouse.id == warehouse_id, Warehouse.is_active.is_(True))
            .first()
        )
        if warehouse is None:
            logger.warning("Warehouse %s not found or inactive", warehouse_id)
            raise NotFoundError("warehouse not found or inactive")

        commodity = (
            self.session.query(Commodity)
            .filter(Commodity.id == commodity_id, Commodity.is_active.is_(True))
            .first()
        )
        if commodity is None:
            logger.warning("Commodity %s not found or inactive", commodity_id)
            raise NotFoundError("commodity not found or inactive")

        if operator_id is not None:
            if self.session.query(Operator.id).filter(Operator.id == operator_id).first() is None:
                logger.warning("Operator %s not found", operator_id)
                raise NotFoundError("operator not found")

        warehouse_zone = optional_text(warehouse_zone, warehouse.default_zone)
        created_by = optional_text(created_by, DEFAULT_CREATED_BY)
        source = optional_text(source, DEFAULT_SOURCE)
        enforce_column_limits(StockRecord, {
            "warehouse_zone": warehouse_zone, "created_by": created_by, "source": source,
        })

        record = StockRecord(
            warehouse_id=warehouse.id,
            commodity_id=commodity.id,
            sku=commodity.sku,
            unit_of_measure=commodity.unit_of_measure,
            quantity=quantity,
            warehouse_zone=warehouse_zone,
            operator_id=operator_id,
            created_by=created_by,
            source=source,
            # None lets the audit policy default it to created_at
            occurred_at=to_utc_naive(occurred_at) if occurred_at is not None else None,
            metadata_json=metadata_json,
        )

        self.session.add(record)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.exception("Failed to persist stock record for warehouse %s", warehouse_id)
            raise

        logger.info("Created stock record %s for warehouse %s", record.id, record.warehouse_id)
        return record

    def get_stock_record(self, record_id: int) -> StockRecord:
        record = self.session.get(StockRecord, record_id)
        if record is None:
            logger.info("Stock record %s not found", record_id)
            raise NotFoundError("stock record not found")
        return record

    def list_stock_records(
        self,
        *,
        warehouse_id: str | None = None,
        commodity_id: str | None = None,
        occurred_from: datetime | None = None,
        occurred_to: datetime | None = None,
        limit: int | None = DEFAULT_LIMIT,
    ) -> list[StockRecord]:
        take = effective_limit(limit)
        logger.debug(
            "Listing stock records warehouse=%s commodity=%s from=%s to=%s limit=%s",
            warehouse_id, commodity_id, occurred_from, occurred_to, take,
        )

        query = self.session.query(StockRecord)
        if warehouse_id is not None:
            query = query.filter(StockRecord.warehouse_id == warehouse_id)
        if commodity_id is not None:
            query = query.filter(StockRecord.commodity_id == commodity_id)
        if occurred_from is not None:
            query = query.filter(StockRecord.occurred_at >= to_utc_naive(occurred_from))
        if occurred_to is not None:
            query = query.filter(StockRecord.occurred_at <= to_utc_naive(occurred_to))

        return (
            query.order_by(StockRecord.occurred_at.desc(), StockRecord.id.desc())
            .limit(take)
            .all()
        )

    def list_stock_records_for_warehouse(self, warehouse_id: str, **filters) -> list[StockRecord]:
        return self.list_stock_records(warehouse_id=warehouse_id, **filters)

    def list_stock_records_for_commodity(self, commodity_id: str, **filters) -> list[StockRecord]:
        return self.list_stock_records(commodity_id=commodity_id, **filters)
