from __future__ import annotations

from sqlalchemy.orm import validates

from ..extensions import db
from ..normalization import normalize_identifier
from ..time_utils import to_utc_z
from ._ids import new_id


class Commodity(db.Model):
    """
    Commodity master data (one row per SKU).

    SKU is globally unique and always lower case. control_parameters is an
    opaque JSON document owned by the client; the backend only checks that it
    parses.
    """
    __tablename__ = "commodities"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_commodities_sku"),
        db.Index("ix_commodities_active", "is_active"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    sku = db.Column(db.String(100), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    unit_of_measure = db.Column(db.String(20), nullable=False)
    batch_required = db.Column(db.Boolean, nullable=False, default=False)
    control_parameters = db.Column(db.Text, nullable=False, default="{}")

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    deactivated_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False)

    @validates("sku")
    def _normalize_sku(self, key, value):
        return normalize_identifier(value, "sku")

    def __repr__(self) -> str:
        return f"<Commodity id={self.id} sku={self.sku!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "unitOfMeasure": self.unit_of_measure,
            "batchRequired": self.batch_required,
            "controlParameters": self.control_parameters,
            "isActive": self.is_active,
            "deactivatedAt": to_utc_z(self.deactivated_at),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
