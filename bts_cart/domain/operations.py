"""Pending optimistic operations and cart snapshots."""
from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from enum import Enum

from bts_cart.domain.cart import CartLineItem

_operation_counter = itertools.count(1)


def _now_ms() -> int:
    return int(time.time() * 1000)


def generate_operation_id() -> str:
    return f"op_{_now_ms()}_{next(_operation_counter)}"


class PendingOperationType(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    UPDATE = "update"
    CLEAR = "clear"


@dataclass(frozen=True)
class PendingOperation:
    """Optimistic cart change awaiting backend confirmation."""

    id: str
    type: PendingOperationType
    item_id: str | None
    previous_items: tuple[CartLineItem, ...]
    timestamp: int = field(default_factory=_now_ms)


@dataclass(frozen=True)
class CartSnapshot:
    """Point-in-time copy of the cart's line items."""

    items: tuple[CartLineItem, ...]
    timestamp: int = field(default_factory=_now_ms)
