from datetime import timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from billing.services import allocator
from billing.services.allocator import allocate_item_id, first_free_number, format_item_id
from billing.services.exceptions import AllocationError
from billing.services.items import create_item, soft_delete_item
from billing.utils import db_now
from models import db
from models.item import Item

WINDOW = timedelta(hours=24)


def _payload(name="Bolt", **extra):
    data = {"name": name, "arabic_name": "مسمار", "buying_price": "0.5", "selling_price": "0.8"}
    data.update(extra)
    return data


def _age_deletion(item_id, hours):
    db.session.execute(
        update(Item).where(Item.item_id == item_id).values(deleted_at=db_now() - timedelta(hours=hours))
    )
    db.session.commit()


def test_format_item_id_pads_to_three_digits():
    assert format_item_id(1) == "ITEM001"
    assert format_item_id(42) == "ITEM042"
    assert format_item_id(999) == "ITEM999"
    assert format_item_id(1000) == "ITEM1000"


def test_first_free_number_fills_gaps():
    assert first_free_number([]) == 1
    assert first_free_number(["ITEM001", "ITEM002"]) == 3
    assert first_free_number(["ITEM001", "ITEM003"]) == 2
    assert first_free_number(["ITEM002", "ITEM003"]) == 1


def test_first_free_number_ignores_lookalike_ids():
    assert first_free_number(["ITEM1", "ITEM01", "ITEMX", "ITEM0001"]) == 1


def test_first_free_number_grows_past_999():
    occupied = [format_item_id(n) for n in range(1, 1000)]
    assert first_free_number(occupied) == 1000


def test_sequential_creates_have_no_gaps(app):
    ids = [create_item(_payload(f"Part {n}")).item_id for n in range(1, 6)]
    assert ids == ["ITEM001", "ITEM002", "ITEM003", "ITEM004", "ITEM005"]


def test_recently_deleted_id_is_not_reused(app):
    create_item(_payload("A"))
    create_item(_payload("B"))
    soft_delete_item("ITEM001")
    assert create_item(_payload("C")).item_id == "ITEM003"


def test_expired_id_is_reused_and_row_purged(app):
    create_item(_payload("A"))
    create_item(_payload("B"))
    soft_delete_item("ITEM001")
    _age_deletion("ITEM001", 25)

    item = create_item(_payload("C"))
    assert item.item_id == "ITEM001"
    assert item.name == "C"
    assert item.deleted_at is None


def test_explicit_ids_do_not_consume_numbers(app):
    create_item(_payload("Custom", item_id="CABLE10"))
    assert create_item(_payload("Auto")).item_id == "ITEM001"


def test_explicit_item_style_id_occupies_its_slot(app):
    create_item(_payload("Manual", item_id="ITEM001"))
    assert create_item(_payload("Auto")).item_id == "ITEM002"


def test_allocation_storage_failure(app, monkeypatch):
    def _broken(now, window):
        raise OperationalError("SELECT", {}, Exception("db down"))

    monkeypatch.setattr(allocator, "occupied_item_ids", _broken)
    with pytest.raises(AllocationError):
        allocate_item_id(db_now(), WINDOW)
