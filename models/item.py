# --- models/item.py ---
from decimal import Decimal
from models import db


def _money(value):
    return float(value) if value is not None else None


class Item(db.Model):
    __tablename__ = "items"
    __table_args__ = (
        db.Index("ix_items_deleted_at", "deleted_at"),
        db.Index("ix_items_name", "name"),
    )

    item_id = db.Column(db.String(100), primary_key=True)            # ITEM### or user supplied

    # Labels
    name = db.Column(db.String(255), nullable=False)
    arabic_name = db.Column(db.String(255), nullable=False, default="")

    # Pricing
    buying_price = db.Column(db.Numeric(12, 3), nullable=True)       # base price in wire/box mode
    selling_price = db.Column(db.Numeric(12, 3), nullable=False)     # derived in wire/box mode
    purchase_percentage = db.Column(db.Numeric(5, 2), nullable=True)
    sell_percentage = db.Column(db.Numeric(5, 2), nullable=True)
    is_wire_box = db.Column(db.Boolean, nullable=False, default=False)

    unit = db.Column(db.String(50), nullable=False, default="pcs")

    # Lifecycle, all written from the database clock
    created_at = db.Column(db.DateTime, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False)
    deleted_at = db.Column(db.DateTime, nullable=True)               # NULL = live

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    @property
    def purchase_cost(self):
        """Implied cost of a wire/box item: base price less the purchase discount."""
        if not self.is_wire_box or self.buying_price is None or self.purchase_percentage is None:
            return None
        discount = Decimal(self.purchase_percentage) / Decimal(100)
        return Decimal(self.buying_price) * (Decimal(1) - discount)

    def to_dict(self):
        return {
            "item_id": self.item_id,
            "name": self.name,
            "arabic_name": self.arabic_name,
            "buying_price": _money(self.buying_price),
            "selling_price": _money(self.selling_price),
            "purchase_percentage": _money(self.purchase_percentage),
            "sell_percentage": _money(self.sell_percentage),
            "purchase_cost": _money(self.purchase_cost),
            "is_wire_box": bool(self.is_wire_box),
            "unit": self.unit,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        }
