from __future__ import annotations

from sqlalchemy.orm import validates

from ..extensions import db
from ..normalization import normalize_identifier
from ..time_utils import to_utc_z


class StockRecord(db.Model):
    """
    Append-only inventory event.

    sku and unit_of_measure are snapshots of the commodity at write time, so a
    later commodity rename never rewrites history. Rows are created once and
    never updated or deleted (enforced by the audit policy at flush time).

    occurred_at is when the movement happened; created_at is when it was
    recorded. occurred_at defaults to created_at unless the caller backdates it.
    """
    __tablename__ = "stock_records"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_stock_records_quantity_positive"),
        db.Index("ix_stock_records_warehouse_occurred", "warehouse_id", "occurred_at"),
        db.Index("ix_stock_records_commodity_occurred", "commodity_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    warehouse_id = db.Column(db.String(36), db.ForeignKey("warehouses.id"), nullable=False)
    commodity_id = db.Column(db.String(36), db.ForeignKey("commodities.id"), nullable=False)

    sku = db.Column(db.String(100), nullable=False)
    unit_of_measure = db.Column(db.String(20), nullable=False)
    quantity = db.Column(db.Numeric(18, 3), nullable=False)
    warehouse_zone = db.Column(db.String(50), nullable=False)

    operator_id = db.Column(db.String(36), db.ForeignKey("operators.id"), nullable=True, index=True)
    created_by = db.Column(db.String(100), nullable=False, default="system")
    source = db.Column(db.String(50), nullable=False, default="manual")

    occurred_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False)

    # "metadata" is reserved on declarative classes; the column keeps the name
    metadata_json = db.Column("metadata", db.Text, nullable=False, default="{}")

    warehouse = db.relationship("Warehouse", backref=db.backref("stock_records", lazy=True))
    commodity = db.relationship("Commodity", backref=db.backref("stock_records", lazy=True))
    operator = db.relationship("Operator", backref=db.backref("stock_records", lazy=True))

    @validates("sku")
    def _normalize_sku(self, key, value):
        return normalize_identifier(value, "sku")

    def __repr__(self) -> str:
        return f"<StockRecord id={self.id} sku={self.sku!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "warehouseId": self.warehouse_id,
            "commodityId": self.commodity_id,
            "sku": self.sku,
            "unitOfMeasure": self.unit_of_measure,
            "quantity": str(self.quantity) if self.quantity is not None else None,
            "warehouseZone": self.warehouse_zone,
            "operatorId": self.operator_id,
            "createdBy": self.created_by,
            "source": self.source,
            "occurredAt": to_utc_z(self.occurred_at),
            "createdAt": to_utc_z(self.created_at),
            "metadata": self.metadata_json,
        }
