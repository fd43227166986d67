# Overview: Flask API routes for commodity operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_role
from ..extensions import db
from ..models import Commodity, OperatorRole
from ..services.commodity_service import CommodityService
from ..services.stock_service import StockService
from ..validation import ModelValidationPolicy, validate_payload
from .query_params import bool_arg, stock_filters_from_args

COMMODITY_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku", "name", "unitOfMeasure", "controlParameters", "batchRequired", "isActive",
    },
    required_on_create={"sku", "name", "unitOfMeasure"},
)

commodities_bp = Blueprint("commodities", __name__, url_prefix="/api/v1/commodities")


@commodities_bp.post("")
@require_auth
def create_commodity_route():
    patch = validate_payload(
        model=Commodity, payload=request.get_json(silent=True), policy=COMMODITY_POLICY
    )
    for flag in ("is_active", "batch_required"):
        if patch.get(flag) is None:
            patch.pop(flag, None)
    commodity = CommodityService(db.session).create_commodity(**patch)
    return jsonify(commodity.to_dict()), 201


@commodities_bp.get("")
@require_auth
def list_commodities_route():
    include_inactive = bool_arg("includeInactive")
    commodities = CommodityService(db.session).list_commodities(include_inactive=include_inactive)
    return jsonify([c.to_dict() for c in commodities]), 200


@commodities_bp.get("/<commodity_id>")
@require_auth
def get_commodity_route(commodity_id: str):
    commodity = CommodityService(db.session).get_commodity(commodity_id)
    return jsonify(commodity.to_dict()), 200


@commodities_bp.get("/by-sku/<sku>")
@require_auth
def get_commodity_by_sku_route(sku: str):
    commodity = CommodityService(db.session).get_commodity_by_sku(sku)
    return jsonify(commodity.to_dict()), 200


@commodities_bp.post("/<commodity_id>/deactivate")
@require_auth
@require_role(OperatorRole.ADMIN)
def deactivate_commodity_route(commodity_id: str):
    commodity = CommodityService(db.session).deactivate_commodity(commodity_id)
    return jsonify(commodity.to_dict()), 200


@commodities_bp.get("/<commodity_id>/stocks")
@require_auth
def list_commodity_stocks_route(commodity_id: str):
    CommodityService(db.session).get_commodity(commodity_id)
    filters = stock_filters_from_args()
    filters.pop("commodity_id", None)
    records = StockService(db.session).list_stock_records_for_commodity(commodity_id, **filters)
    return jsonify([r.to_dict() for r in records]), 200
