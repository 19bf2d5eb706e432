"""Sequential ``ITEM###`` identifiers with reuse.

A number is occupied while its item is live or still inside the restore
window, so a restorable item can never collide with a freshly issued id.
Once the item ages past the window its number is free again.

Callers must hold the item id lock (see ``billing.utils.locks``) and run the
allocation inside the same transaction as the insert.
"""
from datetime import datetime, timedelta
import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError

from billing.services.exceptions import AllocationError
from models import db
from models.item import Item

logger = logging.getLogger(__name__)

ITEM_ID_PREFIX = "ITEM"


def format_item_id(number: int) -> str:
    # More than 999 items simply widens the number.
    return f"{ITEM_ID_PREFIX}{number:03d}"


def first_free_number(occupied_ids) -> int:
    """Smallest positive n whose formatted id is not in ``occupied_ids``."""
    occupied = set(occupied_ids)
    number = 1
    while format_item_id(number) in occupied:
        number += 1
    return number


def occupied_item_ids(now: datetime, restore_window: timedelta):
    cutoff = now - restore_window
    stmt = select(Item.item_id).where(
        Item.item_id.like(f"{ITEM_ID_PREFIX}%"),
        or_(Item.deleted_at.is_(None), Item.deleted_at >= cutoff),
    )
    return db.session.execute(stmt).scalars().all()


def allocate_item_id(now: datetime, restore_window: timedelta) -> str:
    try:
        occupied = occupied_item_ids(now, restore_window)
    except SQLAlchemyError as e:
        logger.error("Item id allocation query failed: %s", e)
        raise AllocationError("Unable to allocate item id") from e
    item_id = format_item_id(first_free_number(occupied))
    logger.debug("Allocated item id %s (%d occupied)", item_id, len(occupied))
    return item_id
