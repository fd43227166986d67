# Overview: Service-layer operations for commodities; encapsulates business logic and database work.

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from ..models import Commodity
from ..normalization import normalize_identifier
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    NotFoundError,
    enforce_column_limits,
    ensure_json_text,
    require_text,
)
from .persistence import commit_new

logger = logging.getLogger(__name__)


class CommodityService:
    def __init__(self, session: Session):
        self.session = session

    def create_commodity(
        self,
        *,
        sku: str,
        name: str,
        unit_of_measure: str,
        control_parameters: Any = None,
        batch_required: bool = False,
        is_active: bool = True,
    ) -> Commodity:
        """
        Create a commodity.

        Raises:
            ValidationError: blank or over-long sku/name/unit_of_measure,
                control_parameters not JSON
            ConflictError: the normalized SKU is already taken
        """
        sku = normalize_identifier(require_text(sku, "sku"), "sku")
        name = require_text(name, "name")
        unit_of_measure = require_text(unit_of_measure, "unit_of_measure")
        control_parameters = ensure_json_text(control_parameters, "control_parameters")
        enforce_column_limits(
            Commodity, {"sku": sku, "name": name, "unit_of_measure": unit_of_measure}
        )

        logger.info("Creating commodity with sku %s", sku)

        if self.session.query(Commodity.id).filter(Commodity.sku == sku).first():
            logger.warning("Commodity with sku %s already exists", sku)
            raise ConflictError("sku exists")

        commodity = Commodity(
            sku=sku,
            name=name,
            unit_of_measure=unit_of_measure,
            control_parameters=control_parameters,
            batch_required=bool(batch_required),
            is_active=bool(is_active),
        )
        if not commodity.is_active:
            commodity.deactivated_at = utcnow()

        commit_new(self.session, commodity, conflict_message="sku exists")
        logger.info("Created commodity %s with sku %s", commodity.id, commodity.sku)
        return commodity

    def get_commodity(self, commodity_id: str) -> Commodity:
        commodity = self.session.get(Commodity, commodity_id)
        if commodity is None:
            logger.info("Commodity %s not found", commodity_id)
            raise NotFoundError("commodity not found")
        return commodity

    def get_commodity_by_sku(self, sku: str) -> Commodity:
        normalized = normalize_identifier(sku, "sku")
        commodity = self.session.query(Commodity).filter(Commodity.sku == normalized).first()
        if commodity is None:
            logger.info("Commodity with sku %s not found", normalized)
            raise NotFoundError("commodity not found")
        return commodity

    def list_commodities(self, include_inactive: bool = False) -> list[Commodity]:
        query = self.session.query(Commodity)
        if not include_inactive:
            query = query.filter(Commodity.is_active.is_(True))
        return query.order_by(Commodity.sku.asc()).all()

    def deactivate_commodity(self, commodity_id: str) -> Commodity:
        commodity = self.get_commodity(commodity_id)
        if commodity.is_active:
            commodity.is_active = False
            commodity.deactivated_at = utcnow()
            self.session.commit()
            logger.info("Deactivated commodity %s (%s)", commodity.id, commodity.sku)
        return commodity
