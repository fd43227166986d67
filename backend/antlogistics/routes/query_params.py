# Overview: Query-string parsing shared by the list endpoints.

from flask import request

from ..time_utils import parse_iso_datetime
from ..validation import ValidationError


def bool_arg(name: str, default: bool = False) -> bool:
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes")


def datetime_arg(name: str):
    try:
        return parse_iso_datetime(request.args.get(name))
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 datetime")


def stock_filters_from_args() -> dict:
    """warehouseId, commodityId, from, to, limit -> StockService.list_stock_records kwargs."""
    raw_limit = request.args.get("limit")
    limit = None
    if raw_limit is not None and raw_limit.strip():
        try:
            limit = int(raw_limit)
        except ValueError:
            raise ValidationError("limit must be an integer")

    return {
        "warehouse_id": request.args.get("warehouseId") or None,
        "commodity_id": request.args.get("commodityId") or None,
        "occurred_from": datetime_arg("from"),
        "occurred_to": datetime_arg("to"),
        "limit": limit,
    }
