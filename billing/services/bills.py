from decimal import Decimal
import logging

from sqlalchemy import select

from billing.metrics import BILLS_CREATED
from billing.services.exceptions import NotFound, ValidationError
from billing.services.items import parse_amount
from billing.utils.db import db_now, transactional
from models import db
from models.bill import Bill, BillItem
from models.item import Item

logger = logging.getLogger(__name__)

MAX_CUSTOMER_LEN = 255


def _clean_customer(customer):
    name = (customer or "").strip()
    if not name:
        return None
    if len(name) > MAX_CUSTOMER_LEN:
        raise ValidationError(f"customer must be at most {MAX_CUSTOMER_LEN} characters")
    return name


def _parse_lines(lines):
    """Shape-check every requested line before anything touches storage."""
    if not lines:
        raise ValidationError("bill items are required")
    parsed = []
    for idx, line in enumerate(lines, start=1):
        item_id = (line.get("item_id") or "").strip()
        if not item_id:
            raise ValidationError(f"line {idx}: item_id is required")
        quantity = line.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f"line {idx}: quantity must be a positive integer")
        unit_price = parse_amount(line.get("unit_price"), f"line {idx}: unit_price")
        if unit_price is not None and unit_price < 0:
            raise ValidationError(f"line {idx}: unit_price must not be negative")
        parsed.append((item_id, quantity, unit_price))
    return parsed


def _snapshot_lines(parsed):
    """Resolve lines against live items and freeze their pricing.

    Must run inside the bill's transaction; one missing item aborts it.
    """
    snapshots = []
    total = Decimal("0")
    for item_id, quantity, override in parsed:
        item = db.session.execute(
            select(Item).where(Item.item_id == item_id, Item.deleted_at.is_(None))
        ).scalar_one_or_none()
        if item is None:
            raise NotFound(f"Item {item_id} not found")

        base_price = Decimal(item.selling_price)
        unit_price = override if override is not None else base_price
        total += unit_price * quantity
        snapshots.append(
            BillItem(
                item_id=item.item_id,
                item_name=item.name,
                arabic_name=item.arabic_name,
                unit=item.unit,
                quantity=quantity,
                unit_price=unit_price,
                base_selling_price=base_price,
            )
        )
    return snapshots, total


def compose_bill(customer, lines) -> Bill:
    parsed = _parse_lines(lines)
    customer_name = _clean_customer(customer)
    with transactional("Failed to create bill"):
        snapshots, total = _snapshot_lines(parsed)
        now = db_now()
        bill = Bill(customer_name=customer_name, total_amount=total, created_at=now, updated_at=now)
        bill.items = snapshots
        db.session.add(bill)
        db.session.flush()
        bill_id = bill.id
    BILLS_CREATED.inc()
    logger.info("Created bill %s with %d lines, total %s", bill_id, len(parsed), total)
    return bill


def update_bill(bill_id: str, customer, lines) -> Bill:
    """Replace a bill's lines with a fresh snapshot of the live catalog."""
    parsed = _parse_lines(lines)
    customer_name = _clean_customer(customer)
    with transactional("Failed to update bill"):
        bill = db.session.get(Bill, bill_id)
        if bill is None:
            raise NotFound("Bill not found")
        snapshots, total = _snapshot_lines(parsed)
        bill.items = snapshots
        bill.customer_name = customer_name
        bill.total_amount = total
        bill.updated_at = db_now()
    logger.info("Updated bill %s with %d lines", bill_id, len(parsed))
    return bill


def list_bills(limit=50, offset=0):
    stmt = select(Bill).order_by(Bill.created_at.desc(), Bill.id).limit(limit).offset(offset)
    return db.session.execute(stmt).scalars().all()


def get_bill(bill_id: str) -> dict:
    """Bill header plus lines ordered by item name.

    The catalog is consulted only for the display unit; lines whose item is
    gone fall back to the stored unit.
    """
    bill = db.session.get(Bill, bill_id)
    if bill is None:
        raise NotFound("Bill not found")
    rows = db.session.execute(
        select(BillItem, Item.unit)
        .outerjoin(Item, Item.item_id == BillItem.item_id)
        .where(BillItem.bill_id == bill_id)
        .order_by(BillItem.item_name, BillItem.id)
    ).all()
    data = bill.to_dict(include_items=False)
    data["items"] = [line.to_dict(unit=unit) for line, unit in rows]
    return data


def delete_bill(bill_id: str) -> None:
    with transactional("Failed to delete bill"):
        bill = db.session.get(Bill, bill_id)
        if bill is None:
            raise NotFound("Bill not found")
        db.session.delete(bill)
    logger.info("Deleted bill %s", bill_id)
