"""Shared pytest fixtures for cart store tests."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

import pytest

from bts_cart.core.exceptions import StorageException
from bts_cart.domain.cart import CartItemInput
from bts_cart.integrations.durable_storage import MemoryStorage
from bts_cart.services.cart_store import CartStore


@dataclass
class FakeRedisClient:
    data: dict[str, str] = field(default_factory=dict)
    set_calls: list[str] = field(default_factory=list)
    closed: bool = False
    fail: bool = False

    def ping(self) -> bool:
        return True

    def get(self, key: str):
        if self.fail:
            raise ConnectionError("redis down")
        return self.data.get(key)

    def set(self, key: str, value: str, nx: bool = False, ex: int | None = None):
        if self.fail:
            raise ConnectionError("redis down")
        self.data[key] = value
        self.set_calls.append(key)
        return True

    def delete(self, key: str) -> int:
        if self.fail:
            raise ConnectionError("redis down")
        existed = 1 if key in self.data else 0
        self.data.pop(key, None)
        return existed

    def close(self) -> None:
        self.closed = True


class BrokenStorage(MemoryStorage):
    """Storage whose writes always fail, like a browser with storage disabled."""

    def set_item(self, key: str, value: str) -> None:
        raise StorageException("quota exceeded", key=key)


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedisClient:
    import bts_cart.integrations.redis_storage as redis_storage_module

    client = FakeRedisClient()
    monkeypatch.setattr(redis_storage_module.redis, "from_url", lambda *args, **kwargs: client)
    return client


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def cart_store(memory_storage: MemoryStorage) -> CartStore:
    return CartStore(memory_storage)


@pytest.fixture
def burger() -> CartItemInput:
    return CartItemInput(
        id="burger-cheese",
        name="Cheeseburger",
        unit_price=Decimal("8.50"),
        vendor_id="grill-house",
        vendor_name="Grill House",
        image_ref="img/burger.png",
        selected_options=("cheese", "no onion"),
        notes="well done",
    )


@pytest.fixture
def fries() -> CartItemInput:
    return CartItemInput(
        id="fries-large",
        name="Large fries",
        unit_price=Decimal("3.25"),
        vendor_id="grill-house",
        vendor_name="Grill House",
    )


@pytest.fixture
def sushi() -> CartItemInput:
    return CartItemInput(
        id="salmon-roll",
        name="Salmon roll",
        unit_price=Decimal("12.00"),
        vendor_id="sushi-bar",
        vendor_name="Sushi Bar",
    )


@pytest.fixture
def broken_storage() -> BrokenStorage:
    return BrokenStorage()
