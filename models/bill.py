import uuid
from models import db, BIGINT


def _new_bill_id():
    return str(uuid.uuid4())


class Bill(db.Model):
    __tablename__ = "bills"
    __table_args__ = (
        db.Index("ix_bills_created_at", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_bill_id)
    customer_name = db.Column(db.String(255), nullable=True)
    total_amount = db.Column(db.Numeric(14, 3), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False)

    items = db.relationship(
        "BillItem",
        backref="bill",
        cascade="all, delete-orphan",
        lazy=True,
        order_by="BillItem.item_name",
    )

    def to_dict(self, include_items=True):
        data = {
            "id": self.id,
            "customer_name": self.customer_name,
            "total_amount": float(self.total_amount),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_items:
            data["items"] = [line.to_dict() for line in self.items]
        return data


class BillItem(db.Model):
    """A priced line frozen at bill time.

    ``item_id`` is not a foreign key; a line outlives the
    catalog row it was copied from.
    """

    __tablename__ = "bill_items"

    id = db.Column(BIGINT, primary_key=True)
    bill_id = db.Column(
        db.String(36), db.ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_id = db.Column(db.String(100), nullable=False)
    item_name = db.Column(db.String(255), nullable=False)
    arabic_name = db.Column(db.String(255), nullable=True)
    unit = db.Column(db.String(50), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 3), nullable=False)
    base_selling_price = db.Column(db.Numeric(12, 3), nullable=False)

    @property
    def line_total(self):
        return self.unit_price * self.quantity

    def to_dict(self, unit=None):
        return {
            "id": self.id,
            "bill_id": self.bill_id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "arabic_name": self.arabic_name,
            "unit": unit or self.unit or "pcs",
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
            "base_selling_price": float(self.base_selling_price),
            "line_total": float(self.line_total),
        }
