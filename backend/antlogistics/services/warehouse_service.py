# Overview: Service-layer operations for warehouses; encapsulates business logic and database work.

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from ..models import Warehouse
from ..normalization import normalize_country_code, normalize_identifier
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    NotFoundError,
    enforce_column_limits,
    enforce_rules_warehouse,
    optional_text,
    require_text,
    to_decimal,
)
from .persistence import commit_new

logger = logging.getLogger(__name__)

DEFAULT_ZONE = "DEFAULT"


class WarehouseService:
    def __init__(self, session: Session):
        self.session = session

    def create_warehouse(
        self,
        *,
        name: str,
        code: str,
        address_line: str,
        city: str,
        country_code: str,
        capacity: Decimal | int | float | str,
        postal_code: str | None = None,
        default_zone: str | None = None,
        is_active: bool = True,
    ) -> Warehouse:
        """
        Create a warehouse.

        Raises:
            ValidationError: blank required field, text longer than its column,
                capacity <= 0 or finer than 0.01, bad country code
            ConflictError: a warehouse with the same (normalized) code exists
        """
        code = normalize_identifier(require_text(code, "code"), "code")
        logger.info("Creating warehouse with code %s", code)

        name = require_text(name, "name")
        address_line = require_text(address_line, "address_line")
        city = require_text(city, "city")
        country_code = normalize_country_code(country_code, "country_code")
        capacity = to_decimal(capacity, "capacity")
        postal_code = optional_text(postal_code)
        default_zone = optional_text(default_zone, DEFAULT_ZONE)
        enforce_column_limits(Warehouse, {
            "code": code, "name": name, "address_line": address_line, "city": city,
            "postal_code": postal_code, "default_zone": default_zone, "capacity": capacity,
        })
        enforce_rules_warehouse(capacity=capacity, country_code=country_code)

        # Advisory only; uq_warehouses_code is authoritative
        existing = self.session.query(Warehouse.id).filter(Warehouse.code == code).first()
        if existing:
            logger.warning("Warehouse with code %s already exists", code)
            raise ConflictError("warehouse code exists")

        warehouse = Warehouse(
            name=name,
            code=code,
            address_line=address_line,
            city=city,
            country_code=country_code,
            postal_code=postal_code,
            default_zone=default_zone,
            capacity=capacity,
            is_active=bool(is_active),
        )
        if not warehouse.is_active:
            warehouse.deactivated_at = utcnow()

        commit_new(self.session, warehouse, conflict_message="warehouse code exists")
        logger.info("Created warehouse %s with code %s", warehouse.id, warehouse.code)
        return warehouse

    def get_warehouse(self, warehouse_id: str) -> Warehouse:
        warehouse = self.session.get(Warehouse, warehouse_id)
        if warehouse is None:
            logger.info("Warehouse %s not found", warehouse_id)
            raise NotFoundError("warehouse not found")
        return warehouse

    def get_warehouse_by_code(self, code: str) -> Warehouse:
        normalized = normalize_identifier(code, "code")
        warehouse = self.session.query(Warehouse).filter(Warehouse.code == normalized).first()
        if warehouse is None:
            logger.info("Warehouse with code %s not found", normalized)
            raise NotFoundError("warehouse not found")
        return warehouse

    def list_warehouses(self, include_inactive: bool = False) -> list[Warehouse]:
        query = self.session.query(Warehouse)
        if not include_inactive:
            query = query.filter(Warehouse.is_active.is_(True))
        warehouses = query.order_by(Warehouse.code.asc()).all()
        logger.debug("Retrieved %d warehouses (include_inactive=%s)", len(warehouses), include_inactive)
        return warehouses

    def deactivate_warehouse(self, warehouse_id: str) -> Warehouse:
        """Soft delete. Idempotent: deactivating twice keeps the first deactivated_at."""
        warehouse = self.get_warehouse(warehouse_id)
        if warehouse.is_active:
            warehouse.is_active = False
            warehouse.deactivated_at = utcnow()
            self.session.commit()
            logger.info("Deactivated warehouse %s (%s)", warehouse.id, warehouse.code)
        return warehouse
