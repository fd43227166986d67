# Overview: Flask API routes for warehouse operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_role
from ..extensions import db
from ..models import OperatorRole, Warehouse
from ..services.stock_service import StockService
from ..services.warehouse_service import WarehouseService
from ..validation import ModelValidationPolicy, validate_payload
from .query_params import bool_arg, stock_filters_from_args

WAREHOUSE_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "code", "addressLine", "city", "countryCode",
        "postalCode", "defaultZone", "capacity", "isActive",
    },
    required_on_create={"name", "code", "addressLine", "city", "countryCode", "capacity"},
)

warehouses_bp = Blueprint("warehouses", __name__, url_prefix="/api/v1/warehouses")


@warehouses_bp.post("")
@require_auth
def create_warehouse_route():
    patch = validate_payload(
        model=Warehouse, payload=request.get_json(silent=True), policy=WAREHOUSE_POLICY
    )
    if patch.get("is_active") is None:
        patch.pop("is_active", None)
    warehouse = WarehouseService(db.session).create_warehouse(**patch)
    return jsonify(warehouse.to_dict()), 201


@warehouses_bp.get("")
@require_auth
def list_warehouses_route():
    include_inactive = bool_arg("includeInactive")
    warehouses = WarehouseService(db.session).list_warehouses(include_inactive=include_inactive)
    return jsonify([w.to_dict() for w in warehouses]), 200


@warehouses_bp.get("/<warehouse_id>")
@require_auth
def get_warehouse_route(warehouse_id: str):
    warehouse = WarehouseService(db.session).get_warehouse(warehouse_id)
    return jsonify(warehouse.to_dict()), 200


@warehouses_bp.get("/by-code/<code>")
@require_auth
def get_warehouse_by_code_route(code: str):
    warehouse = WarehouseService(db.session).get_warehouse_by_code(code)
    return jsonify(warehouse.to_dict()), 200


@warehouses_bp.post("/<warehouse_id>/deactivate")
@require_auth
@require_role(OperatorRole.ADMIN)
def deactivate_warehouse_route(warehouse_id: str):
    warehouse = WarehouseService(db.session).deactivate_warehouse(warehouse_id)
    return jsonify(warehouse.to_dict()), 200


@warehouses_bp.get("/<warehouse_id>/stocks")
@require_auth
def list_warehouse_stocks_route(warehouse_id: str):
    # 404 for an unknown warehouse instead of an empty list
    WarehouseService(db.session).get_warehouse(warehouse_id)
    filters = stock_filters_from_args()
    filters.pop("warehouse_id", None)
    records = StockService(db.session).list_stock_records_for_warehouse(warehouse_id, **filters)
    return jsonify([r.to_dict() for r in records]), 200
