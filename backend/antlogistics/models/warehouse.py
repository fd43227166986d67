from __future__ import annotations

from sqlalchemy.orm import validates

from ..extensions import db
from ..normalization import normalize_country_code, normalize_identifier
from ..time_utils import to_utc_z
from ._ids import new_id


class Warehouse(db.Model):
    """
    Physical storage site.

    CODE: globally unique and always lower case. The plain unique constraint is
    the authoritative guard; the service-level existence check only exists to
    produce a friendly error before the insert. Deactivated warehouses keep
    their code, codes are never recycled.

    SOFT DELETE: is_active=False + deactivated_at. Rows are never removed.
    """
    __tablename__ = "warehouses"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_warehouses_code"),
        db.CheckConstraint("capacity > 0", name="ck_warehouses_capacity_positive"),
        db.CheckConstraint("length(country_code) = 2", name="ck_warehouses_country_code_len"),
        db.Index("ix_warehouses_active", "is_active"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    code = db.Column(db.String(50), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    address_line = db.Column(db.String(500), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    country_code = db.Column(db.String(2), nullable=False)
    postal_code = db.Column(db.String(20), nullable=True)
    default_zone = db.Column(db.String(50), nullable=False, default="DEFAULT")
    capacity = db.Column(db.Numeric(18, 2), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    deactivated_at = db.Column(db.DateTime, nullable=True)

    # Stamped by the audit policy (antlogistics.audit), never by callers
    created_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False)

    @validates("code")
    def _normalize_code(self, key, value):
        return normalize_identifier(value, "code")

    @validates("country_code")
    def _normalize_country_code(self, key, value):
        return normalize_country_code(value, "country_code")

    def __repr__(self) -> str:
        return f"<Warehouse id={self.id} code={self.code!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "addressLine": self.address_line,
            "city": self.city,
            "countryCode": self.country_code,
            "postalCode": self.postal_code,
            "defaultZone": self.default_zone,
            "capacity": str(self.capacity) if self.capacity is not None else None,
            "isActive": self.is_active,
            "deactivatedAt": to_utc_z(self.deactivated_at),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
