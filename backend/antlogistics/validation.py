from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .time_utils import parse_iso_datetime, to_utc_naive


MIN_IDLE_TIMEOUT_MINUTES = 5
MAX_IDLE_TIMEOUT_MINUTES = 180
MIN_PASSWORD_LENGTH = 8
# bcrypt only ever sees the first 72 bytes; newer releases refuse longer input
MAX_PASSWORD_BYTES = 72

_COUNTRY_CODE_RE = re.compile(r"^[A-Z]{2}$")


class DomainError(Exception):
    """Expected, caller-recoverable failure. status_code drives the HTTP mapping."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError, ValueError):
    """400-level input problem."""

    status_code = 400


class ConflictError(DomainError, ValueError):
    """409-level unique-key violation (e.g., duplicate SKU)."""

    status_code = 409


class NotFoundError(DomainError, LookupError):
    """404: referenced entity is missing, or hidden because it is inactive."""

    status_code = 404


class UnauthenticatedError(DomainError):
    """401: missing, invalid, expired or revoked session."""

    status_code = 401


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer for JSON payloads:
    - writable_fields: camelCase keys clients are allowed to send (security boundary)
    - required_on_create: keys that must be present
    - aliases: wire key -> model attribute, for keys that don't snake_case cleanly
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    aliases: dict[str, str] = field(default_factory=dict)


def camel_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.column_attrs}


def _coerce_value(key: str, col, value: Any):
    coltype = col.columns[0].type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not re.fullmatch(r"-?\d+", stripped):
                raise ValidationError(f"{key} must be an integer")
            return int(stripped)
        raise ValidationError(f"{key} must be an integer")

    if isinstance(coltype, Numeric):
        if isinstance(value, bool):
            raise ValidationError(f"{key} must be a number")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValidationError(f"{key} must be a finite number")
        try:
            # str() keeps 5.5 as Decimal("5.5") instead of the binary float expansion
            number = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{key} must be a number")
        if not number.is_finite():
            raise ValidationError(f"{key} must be a finite number")
        return number

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise ValidationError(f"{key} must be a boolean")

    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return to_utc_naive(value)
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{key} must be a datetime")

    if isinstance(coltype, (String, Text)):
        # JSON blobs may arrive as objects; they are stored as text
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
) -> dict:
    """
    Validates + normalizes an incoming JSON create payload against:
    - the policy allowlist (writable_fields) and required_on_create
    - SQLAlchemy column metadata (type, String length)

    Returns a dict keyed by model attribute name. Business rules (capacity,
    quantity, uniqueness, ...) are the services' job, not this layer's.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    missing = sorted(f for f in policy.required_on_create if payload.get(f) is None)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    cleaned: dict = {}

    for k, raw in payload.items():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        attr = policy.aliases.get(k, camel_to_snake(k))
        col = cols.get(attr)
        if col is None:
            raise ValidationError(f"Unknown field: {k}")

        val = _coerce_value(k, col, raw)

        coltype = col.columns[0].type
        if isinstance(coltype, String) and coltype.length and isinstance(val, str):
            if len(val) > coltype.length:
                raise ValidationError(f"{k} exceeds max length {coltype.length}")

        cleaned[attr] = val

    return cleaned


def require_text(value: str | None, field_name: str) -> str:
    """Non-empty, non-whitespace text, returned stripped."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def optional_text(value: str | None, default: str | None = None) -> str | None:
    """Blank counts as omitted."""
    if value is None or not str(value).strip():
        return default
    return str(value).strip()


def ensure_json_text(value: Any, field_name: str, default: str = "{}") -> str:
    """Opaque JSON blob: omitted/blank -> default, otherwise it must parse."""
    if value is None:
        return default
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    text = str(value).strip()
    if not text:
        return default
    try:
        json.loads(text)
    except ValueError:
        raise ValidationError(f"{field_name} must be valid JSON")
    return text


def to_decimal(value: Any, field_name: str) -> Decimal:
    if value is None:
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field_name} must be a number")
    if not number.is_finite():
        raise ValidationError(f"{field_name} must be a finite number")
    return number


def _check_decimal_fits(field_name: str, number: Decimal, precision: int | None, scale: int | None) -> None:
    _, digits, exponent = number.normalize().as_tuple()
    places = max(0, -exponent)
    if scale is not None and places > scale:
        raise ValidationError(f"{field_name} allows at most {scale} decimal places")
    if precision is not None:
        integer_digits = max(0, len(digits) + exponent)
        if integer_digits > precision - (scale or 0):
            raise ValidationError(f"{field_name} is too large")


def enforce_column_limits(model: DeclarativeMeta, values: dict) -> None:
    """
    Values must fit their columns as-is: no String truncation, and no Numeric
    rounding (0.0001 in a 3-place column would otherwise be stored as 0).
    Keys are model attribute names; None values are skipped.
    """
    cols = _columns_by_key(model)
    for attr, value in values.items():
        if value is None:
            continue
        coltype = cols[attr].columns[0].type
        if isinstance(coltype, String) and coltype.length and isinstance(value, str):
            if len(value) > coltype.length:
                raise ValidationError(f"{attr} exceeds max length {coltype.length}")
        elif isinstance(coltype, Numeric) and isinstance(value, Decimal):
            _check_decimal_fits(attr, value, coltype.precision, coltype.scale)


def enforce_rules_warehouse(*, capacity: Decimal, country_code: str) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    country_code is expected already normalized (upper-cased).
    """
    if capacity <= 0:
        raise ValidationError("capacity must be > 0")
    if not _COUNTRY_CODE_RE.match(country_code or ""):
        raise ValidationError("country code must be two letters")


def enforce_rules_stock(*, quantity: Decimal) -> None:
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")


def enforce_rules_operator(*, password: str, idle_timeout_minutes: Any) -> int:
    """Returns the validated idle timeout."""
    if password is None or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")

    if isinstance(idle_timeout_minutes, bool) or not isinstance(idle_timeout_minutes, int):
        raise ValidationError("idle timeout must be an integer number of minutes")
    if not MIN_IDLE_TIMEOUT_MINUTES <= idle_timeout_minutes <= MAX_IDLE_TIMEOUT_MINUTES:
        raise ValidationError(
            f"idle timeout must be between {MIN_IDLE_TIMEOUT_MINUTES} "
            f"and {MAX_IDLE_TIMEOUT_MINUTES} minutes"
        )
    return idle_timeout_minutes
