# backend/antlogistics/normalization.py
"""
Canonical forms for identifier fields.

Identifiers are folded at the moment they are assigned to a model attribute
(see the @validates hooks on the models), so a stored identifier can never be
in a non-canonical form no matter how the caller spelled it. Display fields
(names, addresses) are never touched here.

- warehouse code, commodity SKU, operator username -> lower case
- country code -> upper case
"""
from __future__ import annotations

from .validation import ValidationError


def normalize_identifier(value: str | None, field_name: str) -> str:
    if value is None:
        raise ValidationError(f"{field_name} is required")
    return str(value).strip().lower()


def normalize_country_code(value: str | None, field_name: str = "country_code") -> str:
    if value is None:
        raise ValidationError(f"{field_name} is required")
    return str(value).strip().upper()
