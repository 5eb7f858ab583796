"""Tests for durable cart persistence and rehydration."""
from __future__ import annotations

import json
from decimal import Decimal

import pytest

from bts_cart.core.constants import CART_STORAGE_KEY
from bts_cart.domain.cart import CartLineItem, CartState
from bts_cart.integrations.durable_storage import FileStorage, MemoryStorage
from bts_cart.services.cart_store import CartStore


def _stored_envelope(storage: MemoryStorage) -> dict:
    return json.loads(storage.get_item(CART_STORAGE_KEY))


def test_round_trip_keeps_optional_fields_and_order(memory_storage, burger, fries) -> None:
    store = CartStore(memory_storage)
    store.add(fries, quantity=2)
    store.add(burger)
    store.add({"id": "shake", "vendorId": "grill-house", "unitPrice": "4", "notes": "", "selectedOptions": []})

    reloaded = CartStore(memory_storage)

    assert reloaded.state == store.state
    assert [i.id for i in reloaded.line_items] == ["fries-large", "burger-cheese", "shake"]
    shake = reloaded.get_item("shake")
    assert shake.notes == ""
    assert shake.selected_options == ()
    assert shake.image_ref is None
    assert reloaded.get_item("fries-large").notes is None
    assert reloaded.get_item("fries-large").selected_options is None


def test_record_format(memory_storage, burger, fries) -> None:
    store = CartStore(memory_storage)
    store.add(burger, quantity=3)
    store.add(fries)

    envelope = _stored_envelope(memory_storage)
    assert envelope["version"] == 0
    assert envelope["state"]["activeVendorId"] == "grill-house"
    first, second = envelope["state"]["lineItems"]
    assert first == {
        "id": "burger-cheese",
        "name": "Cheeseburger",
        "unitPrice": "8.50",
        "quantity": 3,
        "vendorId": "grill-house",
        "vendorName": "Grill House",
        "imageRef": "img/burger.png",
        "selectedOptions": ["cheese", "no onion"],
        "notes": "well done",
    }
    assert "notes" not in second
    assert "imageRef" not in second
    assert "selectedOptions" not in second


def test_every_mutation_is_persisted(memory_storage, fries) -> None:
    store = CartStore(memory_storage)
    store.add(fries)
    store.set_quantity(fries.id, 4)
    assert _stored_envelope(memory_storage)["state"]["lineItems"][0]["quantity"] == 4

    store.clear()
    assert _stored_envelope(memory_storage)["state"] == {"lineItems": [], "activeVendorId": None}


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[]",
        json.dumps({"state": {"lineItems": [], "activeVendorId": None}, "version": 3}),
        json.dumps({"version": 0}),
        json.dumps({"state": {"lineItems": [{"id": "a"}], "activeVendorId": "v"}, "version": 0}),
        json.dumps(
            {
                "state": {
                    "lineItems": [
                        {"id": "a", "unitPrice": "1", "quantity": 1, "vendorId": "v1"},
                        {"id": "b", "unitPrice": "1", "quantity": 1, "vendorId": "v2"},
                    ],
                    "activeVendorId": "v1",
                },
                "version": 0,
            }
        ),
        json.dumps(
            {
                "state": {
                    "lineItems": [{"id": "a", "unitPrice": "1", "quantity": 0, "vendorId": "v1"}],
                    "activeVendorId": "v1",
                },
                "version": 0,
            }
        ),
        json.dumps({"state": {"lineItems": [], "activeVendorId": "v1"}, "version": 0}),
        json.dumps(
            {
                "state": {
                    "lineItems": [{"id": "a", "unitPrice": "1e30", "quantity": 1, "vendorId": "v1"}],
                    "activeVendorId": "v1",
                },
                "version": 0,
            }
        ),
    ],
)
def test_malformed_record_falls_back_to_empty(memory_storage, raw) -> None:
    memory_storage.set_item(CART_STORAGE_KEY, raw)
    store = CartStore(memory_storage)
    assert store.state == CartState.empty()


def test_persistence_failure_keeps_memory_state(broken_storage, fries) -> None:
    store = CartStore(broken_storage)
    line = store.add(fries, quantity=2)

    assert line.quantity == 2
    assert store.total_item_count() == 2
    store.set_quantity(fries.id, 5)
    assert store.get_item(fries.id).quantity == 5


def test_custom_storage_key(memory_storage, fries) -> None:
    store = CartStore(memory_storage, storage_key="other-cart")
    store.add(fries)
    assert memory_storage.get_item(CART_STORAGE_KEY) is None
    assert memory_storage.get_item("other-cart") is not None


class TestFileStorage:
    """File-backed durable storage."""

    def test_cart_survives_restart(self, tmp_path, burger):
        store = CartStore(FileStorage(tmp_path, origin="https://shop.example"))
        store.add(burger, quantity=2)

        reloaded = CartStore(FileStorage(tmp_path, origin="https://shop.example"))
        assert reloaded.state == store.state

    def test_origins_are_isolated(self, tmp_path, burger):
        CartStore(FileStorage(tmp_path, origin="https://a.example")).add(burger)
        other = CartStore(FileStorage(tmp_path, origin="https://b.example"))
        assert other.is_empty()

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.path.write_text("{broken", encoding="utf-8")
        assert storage.get_item(CART_STORAGE_KEY) is None

    def test_undecodable_file_starts_empty_cart(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.path.write_bytes(b"\xff\xfe{broken")
        store = CartStore(storage)
        assert store.state == CartState.empty()

    def test_remove_item(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.set_item("k", "v")
        storage.remove_item("k")
        assert storage.get_item("k") is None


def test_line_item_dict_round_trip() -> None:
    item = CartLineItem(
        id="pizza-xl",
        name="Pizza XL",
        unit_price=Decimal("15.90"),
        quantity=2,
        vendor_id="napoli",
        vendor_name="Napoli",
        selected_options=("olives",),
    )
    assert CartLineItem.from_dict(item.to_dict()) == item
