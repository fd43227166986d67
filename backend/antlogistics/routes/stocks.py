# Overview: Flask API routes for stock records; parses input and returns JSON responses.

"""
Stock records are append-only: there is no update or delete route.

Attribution fields (operatorId, createdBy, source) are taken from the payload
as sent; omitted ones get the service defaults ("system", "manual").
"""
from flask import Blueprint, jsonify, request

from ..decorators import require_auth
from ..extensions import db
from ..models import StockRecord
from ..services.stock_service import StockService
from ..validation import ModelValidationPolicy, validate_payload
from .query_params import stock_filters_from_args

STOCK_POLICY = ModelValidationPolicy(
    writable_fields={
        "warehouseId", "commodityId", "quantity", "warehouseZone",
        "operatorId", "createdBy", "source", "occurredAt", "metadata",
    },
    required_on_create={"warehouseId", "commodityId", "quantity"},
    aliases={"metadata": "metadata_json"},
)

stocks_bp = Blueprint("stocks", __name__, url_prefix="/api/v1/stocks")


@stocks_bp.post("")
@require_auth
def create_stock_record_route():
    patch = validate_payload(
        model=StockRecord, payload=request.get_json(silent=True), policy=STOCK_POLICY
    )
    record = StockService(db.session).create_stock_record(
        warehouse_id=patch["warehouse_id"],
        commodity_id=patch["commodity_id"],
        quantity=patch["quantity"],
        warehouse_zone=patch.get("warehouse_zone"),
        operator_id=patch.get("operator_id") or None,
        created_by=patch.get("created_by"),
        source=patch.get("source"),
        occurred_at=patch.get("occurred_at"),
        metadata=patch.get("metadata_json"),
    )
    return jsonify(record.to_dict()), 201


@stocks_bp.get("/<int:record_id>")
@require_auth
def get_stock_record_route(record_id: int):
    record = StockService(db.session).get_stock_record(record_id)
    return jsonify(record.to_dict()), 200


@stocks_bp.get("")
@require_auth
def list_stock_records_route():
    records = StockService(db.session).list_stock_records(**stock_filters_from_args())
    return jsonify([r.to_dict() for r in records]), 200
