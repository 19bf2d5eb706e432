"""Catalog item lifecycle.

States: live -> soft-deleted -> purge-eligible -> removed. Restore is the
only way back and only works inside the restore window. Single-row
transitions are conditional UPDATE/DELETE statements; zero affected rows
means the item was not in the required state.
"""
from datetime import timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import logging
import re

from flask import current_app
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from billing.metrics import ITEMS_PURGED
from billing.services.allocator import allocate_item_id
from billing.services.exceptions import ConflictError, NotFound, ValidationError
from billing.utils.db import db_now, transactional
from billing.utils.locks import advisory_lock
from models import db
from models.item import Item

logger = logging.getLogger(__name__)

THREEPLACES = Decimal("0.001")
TWOPLACES = Decimal("0.01")
ITEM_ID_RE = re.compile(r"^[A-Za-z0-9]+$")
MAX_ITEM_ID_LEN = 100
DEFAULT_UNIT = "pcs"


def restore_window() -> timedelta:
    return timedelta(hours=current_app.config["ITEM_RESTORE_WINDOW_HOURS"])


def parse_amount(value, field, places=THREEPLACES):
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        d = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not d.is_finite():
        raise ValidationError(f"{field} must be a number")
    return d.quantize(places, rounding=ROUND_HALF_UP)


def _percentage(value, field):
    pct = parse_amount(value, field, places=TWOPLACES)
    if pct is None or pct < 0 or pct > 100:
        raise ValidationError(f"{field} must be between 0 and 100")
    return pct


def normalize_item_id(raw):
    """Trimmed user-supplied id, or None when the system should allocate one."""
    item_id = (raw or "").strip()
    if not item_id:
        return None
    if len(item_id) > MAX_ITEM_ID_LEN:
        raise ValidationError(f"item_id must be at most {MAX_ITEM_ID_LEN} characters")
    if not ITEM_ID_RE.match(item_id):
        raise ValidationError("item_id must contain only letters and numbers")
    return item_id


def derive_selling_price(buying_price: Decimal, sell_percentage: Decimal) -> Decimal:
    """Wire/box selling price: base price less the sell discount."""
    price = buying_price * (Decimal(1) - sell_percentage / Decimal(100))
    return price.quantize(THREEPLACES, rounding=ROUND_HALF_UP)


def validate_item_fields(data: dict) -> dict:
    """Check the pricing-mode rules and return column values for an item row.

    Used unchanged by create and update.
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("name is required")
    arabic_name = (data.get("arabic_name") or "").strip()
    if not arabic_name:
        raise ValidationError("arabic_name is required")

    is_wire_box = bool(data.get("is_wire_box"))
    buying_price = parse_amount(data.get("buying_price"), "buying_price")

    if is_wire_box:
        if buying_price is None or buying_price <= 0:
            raise ValidationError("buying_price (base purchase price) is required for wire/box items")
        purchase_percentage = _percentage(data.get("purchase_percentage"), "purchase_percentage")
        sell_percentage = _percentage(data.get("sell_percentage"), "sell_percentage")
        selling_price = derive_selling_price(buying_price, sell_percentage)
    else:
        if buying_price is None or buying_price <= 0:
            raise ValidationError("buying_price is required and must be positive")
        selling_price = parse_amount(data.get("selling_price"), "selling_price")
        if selling_price is None or selling_price <= 0:
            raise ValidationError("selling_price must be positive")
        purchase_percentage = None
        sell_percentage = None

    unit = (data.get("unit") or "").strip() or DEFAULT_UNIT

    return {
        "name": name,
        "arabic_name": arabic_name,
        "buying_price": buying_price,
        "selling_price": selling_price,
        "purchase_percentage": purchase_percentage,
        "sell_percentage": sell_percentage,
        "is_wire_box": is_wire_box,
        "unit": unit,
    }


def _purge_expired(now, window) -> int:
    result = db.session.execute(
        delete(Item)
        .where(Item.deleted_at.is_not(None), Item.deleted_at < now - window)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


def list_items(include_deleted=False, limit=100, offset=0):
    stmt = select(Item)
    if not include_deleted:
        stmt = stmt.where(Item.deleted_at.is_(None))
    stmt = stmt.order_by(Item.name, Item.item_id).limit(limit).offset(offset)
    return db.session.execute(stmt).scalars().all()


def get_item(item_id: str) -> Item:
    item = db.session.get(Item, item_id)
    if item is None:
        raise NotFound("Item not found")
    return item


def create_item(data: dict) -> Item:
    item_id = normalize_item_id(data.get("item_id"))
    fields = validate_item_fields(data)
    cfg = current_app.config
    window = restore_window()

    # The lock must outlive the commit so a second writer sees our row.
    with advisory_lock(cfg["ITEM_ID_LOCK_KEY"]):
        with transactional("Failed to create item"):
            now = db_now()
            purged = _purge_expired(now, window)
            if purged:
                ITEMS_PURGED.inc(purged)
                logger.info("Purged %d expired items before create", purged)
            if item_id is None:
                item_id = allocate_item_id(now, window)
            elif db.session.get(Item, item_id) is not None:
                raise ConflictError(f"Item {item_id} already exists")
            item = Item(item_id=item_id, created_at=now, updated_at=now, deleted_at=None, **fields)
            db.session.add(item)
            try:
                db.session.flush()
            except IntegrityError as e:
                raise ConflictError(f"Item {item_id} already exists") from e

    logger.info("Created item %s", item_id)
    return item


def update_item(item_id: str, data: dict) -> Item:
    fields = validate_item_fields(data)
    with transactional("Failed to update item"):
        now = db_now()
        result = db.session.execute(
            update(Item)
            .where(Item.item_id == item_id, Item.deleted_at.is_(None))
            .values(updated_at=now, **fields)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFound("Item not found")
    logger.info("Updated item %s", item_id)
    return db.session.get(Item, item_id, populate_existing=True)


def soft_delete_item(item_id: str) -> None:
    with transactional("Failed to delete item"):
        now = db_now()
        result = db.session.execute(
            update(Item)
            .where(Item.item_id == item_id, Item.deleted_at.is_(None))
            .values(deleted_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFound("Item not found")
    logger.info("Soft-deleted item %s", item_id)


def restore_item(item_id: str) -> Item:
    # Already live, unknown and expired all look the same to the caller.
    with transactional("Failed to restore item"):
        now = db_now()
        result = db.session.execute(
            update(Item)
            .where(
                Item.item_id == item_id,
                Item.deleted_at.is_not(None),
                Item.deleted_at > now - restore_window(),
            )
            .values(deleted_at=None, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConflictError("Restore window expired or item not found")
    logger.info("Restored item %s", item_id)
    return db.session.get(Item, item_id, populate_existing=True)


def purge_item(item_id: str) -> None:
    """Permanently remove a soft-deleted item without waiting for the sweep."""
    with transactional("Failed to purge item"):
        result = db.session.execute(
            delete(Item)
            .where(Item.item_id == item_id, Item.deleted_at.is_not(None))
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            raise NotFound("Deleted item not found")
    ITEMS_PURGED.inc()
    logger.info("Purged item %s", item_id)


def purge_expired_items() -> int:
    with transactional("Failed to purge expired items"):
        purged = _purge_expired(db_now(), restore_window())
    if purged:
        ITEMS_PURGED.inc(purged)
    logger.info("Cleanup sweep removed %d items", purged)
    return purged
