import pytest

from billing.services import bills as bill_service
from billing.services.exceptions import NotFound, ValidationError
from billing.version import API_PREFIX
from models import db
from models.bill import Bill, BillItem

ITEMS = f"{API_PREFIX}/items"
BILLS = f"{API_PREFIX}/bills"


def post_bill(client, headers, lines, customer="Walk-in"):
    return client.post(BILLS, json={"customer": customer, "items": lines}, headers=headers)


def test_bolt_scenario(client, auth_headers, new_item):
    item = new_item(name="Bolt", buying_price=0.5, selling_price=0.8)
    assert item["item_id"] == "ITEM001"

    client.delete(f"{ITEMS}/ITEM001", headers=auth_headers)
    r = post_bill(client, auth_headers, [{"item_id": "ITEM001", "quantity": 3}])
    assert r.status_code == 404
    assert "ITEM001" in r.get_json()["message"]

    assert client.post(f"{ITEMS}/ITEM001/restore", headers=auth_headers).status_code == 200
    r = post_bill(client, auth_headers, [{"item_id": "ITEM001", "quantity": 3}])
    assert r.status_code == 201
    bill = r.get_json()["data"]
    assert bill["total_amount"] == 2.4
    assert bill["customer_name"] == "Walk-in"
    assert len(bill["items"]) == 1
    assert bill["items"][0]["line_total"] == 2.4


def test_bill_total_is_sum_of_lines(client, auth_headers, new_item):
    new_item(name="Bolt", selling_price=0.8)
    new_item(name="Nut", selling_price=0.25)
    r = post_bill(client, auth_headers, [
        {"itemId": "ITEM001", "quantity": 3},
        {"itemId": "ITEM002", "quantity": 4, "unitPrice": 0.2},
    ])
    assert r.status_code == 201
    bill = r.get_json()["data"]
    assert bill["total_amount"] == 3.2
    lines = {line["item_id"]: line for line in bill["items"]}
    assert lines["ITEM002"]["unit_price"] == 0.2
    assert lines["ITEM002"]["base_selling_price"] == 0.25
    assert lines["ITEM001"]["unit_price"] == lines["ITEM001"]["base_selling_price"] == 0.8


def test_zero_override_is_kept(client, auth_headers, new_item):
    new_item()
    r = post_bill(client, auth_headers, [{"item_id": "ITEM001", "quantity": 2, "unit_price": 0}])
    assert r.status_code == 201
    assert r.get_json()["data"]["total_amount"] == 0.0


def test_missing_item_persists_nothing(client, auth_headers, new_item):
    new_item()
    r = post_bill(client, auth_headers, [
        {"item_id": "ITEM001", "quantity": 1},
        {"item_id": "ITEM404", "quantity": 1},
    ])
    assert r.status_code == 404
    assert r.get_json()["message"] == "Item ITEM404 not found"
    assert Bill.query.count() == 0
    assert BillItem.query.count() == 0


@pytest.mark.parametrize("lines", [
    [],
    [{"item_id": "ITEM001", "quantity": 0}],
    [{"item_id": "ITEM001", "quantity": -2}],
    [{"item_id": "ITEM001", "quantity": 1, "unit_price": -0.5}],
    [{"item_id": "  ", "quantity": 1}],
])
def test_invalid_lines_rejected(client, auth_headers, new_item, lines):
    new_item()
    r = post_bill(client, auth_headers, lines)
    assert r.status_code == 400
    assert Bill.query.count() == 0


def test_service_rejects_non_integer_quantity(app):
    with pytest.raises(ValidationError):
        bill_service.compose_bill(None, [{"item_id": "ITEM001", "quantity": 1.5}])
    with pytest.raises(ValidationError):
        bill_service.compose_bill(None, [{"item_id": "ITEM001", "quantity": True}])


def test_snapshot_survives_item_edit_and_delete(client, auth_headers, new_item):
    new_item(name="Bolt", selling_price=0.8, unit="box")
    bill_id = post_bill(client, auth_headers, [{"item_id": "ITEM001", "quantity": 2}]).get_json()["data"]["id"]

    client.put(f"{ITEMS}/ITEM001", json={"name": "Renamed", "arabic_name": "x", "buying_price": 1,
                                         "selling_price": 5, "unit": "kg"}, headers=auth_headers)
    line = client.get(f"{BILLS}/{bill_id}", headers=auth_headers).get_json()["data"]["items"][0]
    assert line["item_name"] == "Bolt"
    assert line["unit_price"] == 0.8
    assert line["unit"] == "kg"

    client.delete(f"{ITEMS}/ITEM001", headers=auth_headers)
    client.delete(f"{ITEMS}/ITEM001/purge", headers=auth_headers)
    bill = client.get(f"{BILLS}/{bill_id}", headers=auth_headers).get_json()["data"]
    assert bill["total_amount"] == 1.6
    assert bill["items"][0]["item_name"] == "Bolt"
    assert bill["items"][0]["unit"] == "box"


def test_unit_defaults_to_pcs(app):
    bill = Bill(total_amount=0, created_at=db.func.current_timestamp(), updated_at=db.func.current_timestamp())
    line = BillItem(item_id="GONE", item_name="Gone", quantity=1, unit_price=1, base_selling_price=1, unit=None)
    bill.items = [line]
    db.session.add(bill)
    db.session.commit()
    data = bill_service.get_bill(bill.id)
    assert data["items"][0]["unit"] == "pcs"


def test_lines_ordered_by_item_name(client, auth_headers, new_item):
    new_item(name="Washer")
    new_item(name="Anchor")
    new_item(name="Nut")
    r = post_bill(client, auth_headers, [{"item_id": f"ITEM00{n}", "quantity": 1} for n in (1, 2, 3)])
    names = [line["item_name"] for line in r.get_json()["data"]["items"]]
    assert names == ["Anchor", "Nut", "Washer"]


def test_get_and_delete_bill(client, auth_headers, new_item):
    new_item()
    bill_id = post_bill(client, auth_headers, [{"item_id": "ITEM001", "quantity": 1}]).get_json()["data"]["id"]
    assert client.get(f"{BILLS}/{bill_id}", headers=auth_headers).status_code == 200

    r = client.delete(f"{BILLS}/{bill_id}", headers=auth_headers)
    assert r.status_code == 200
    assert BillItem.query.count() == 0
    assert client.get(f"{BILLS}/{bill_id}", headers=auth_headers).status_code == 404
    assert client.delete(f"{BILLS}/{bill_id}", headers=auth_headers).status_code == 404


def test_list_bills_newest_first(client, auth_headers, new_item):
    new_item()
    first = post_bill(client, auth_headers, [{"item_id": "ITEM001", "quantity": 1}], customer="First")
    second = post_bill(client, auth_headers, [{"item_id": "ITEM001", "quantity": 2}], customer=None)
    assert first.status_code == second.status_code == 201

    r = client.get(BILLS, headers=auth_headers)
    assert r.status_code == 200
    bills = r.get_json()["data"]
    assert len(bills) == 2
    assert {b["customer_name"] for b in bills} == {"First", None}
    assert "items" not in bills[0]

    r = client.get(f"{BILLS}?limit=1", headers=auth_headers)
    assert len(r.get_json()["data"]) == 1


def test_update_bill_replaces_lines(client, auth_headers, new_item):
    new_item(name="Bolt", selling_price=0.8)
    new_item(name="Nut", selling_price=0.25)
    bill_id = post_bill(client, auth_headers, [{"item_id": "ITEM001", "quantity": 1}]).get_json()["data"]["id"]

    r = client.put(f"{BILLS}/{bill_id}", json={"customerName": "Ali", "items": [{"item_id": "ITEM002", "quantity": 4}]},
                   headers=auth_headers)
    assert r.status_code == 200
    bill = r.get_json()["data"]
    assert bill["customer_name"] == "Ali"
    assert bill["total_amount"] == 1.0
    assert [line["item_id"] for line in bill["items"]] == ["ITEM002"]
    assert BillItem.query.count() == 1


def test_update_bill_is_atomic(client, auth_headers, new_item):
    new_item()
    bill_id = post_bill(client, auth_headers, [{"item_id": "ITEM001", "quantity": 1}]).get_json()["data"]["id"]
    r = client.put(f"{BILLS}/{bill_id}", json={"items": [{"item_id": "ITEM404", "quantity": 1}]}, headers=auth_headers)
    assert r.status_code == 404
    bill = client.get(f"{BILLS}/{bill_id}", headers=auth_headers).get_json()["data"]
    assert [line["item_id"] for line in bill["items"]] == ["ITEM001"]
    assert bill["customer_name"] == "Walk-in"

    r = client.put(f"{BILLS}/missing", json={"items": [{"item_id": "ITEM001", "quantity": 1}]}, headers=auth_headers)
    assert r.status_code == 404


def test_get_bill_service_not_found(app):
    with pytest.raises(NotFound):
        bill_service.get_bill("nope")
