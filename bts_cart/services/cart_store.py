"""Cart store: single owner of cart state, persisted after every mutation."""
from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any

from bts_cart.core.constants import CART_STORAGE_KEY, CART_STORAGE_VERSION, DEFAULT_CURRENCY_DECIMALS
from bts_cart.core.exceptions import CartValidationException, StorageException, VendorConflictException
from bts_cart.core.logging_config import logger
from bts_cart.core.money import sum_money
from bts_cart.domain.cart import CartItemInput, CartLineItem, CartState, require_quantity
from bts_cart.integrations.durable_storage import DurableStorage
from bts_cart.services.optimistic import OptimisticUpdatesMixin

CartListener = Callable[[CartState], None]


def _raw_vendor_id(item: Any) -> Any:
    if isinstance(item, Mapping):
        return item.get("vendor_id", item.get("vendorId"))
    return getattr(item, "vendor_id", None)


class CartStore(OptimisticUpdatesMixin):
    """Shopping cart locked to one vendor at a time.

    State is rehydrated from ``storage`` when the store is created and
    written back after every mutation. A failed write is logged and the
    in-memory change stands, so the cart stays usable when storage is
    unavailable.
    """

    def __init__(
        self,
        storage: DurableStorage,
        *,
        storage_key: str = CART_STORAGE_KEY,
        currency_decimals: int = DEFAULT_CURRENCY_DECIMALS,
    ) -> None:
        self._storage = storage
        self._storage_key = storage_key
        self._decimals = currency_decimals
        self._listeners: list[CartListener] = []
        self._init_optimistic()
        self._state = self._rehydrate()

    # ========== PERSISTENCE ==========

    def _serialize(self, state: CartState) -> str:
        envelope = {"state": state.to_dict(self._decimals), "version": CART_STORAGE_VERSION}
        return json.dumps(envelope, ensure_ascii=False)

    def _deserialize(self, raw: str) -> CartState:
        try:
            envelope = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CartValidationException(f"Cart record is not valid JSON: {exc}") from exc
        if not isinstance(envelope, dict):
            raise CartValidationException("Cart record must be an object")
        version = envelope.get("version")
        if isinstance(version, bool) or version != CART_STORAGE_VERSION:
            raise CartValidationException(f"Unsupported cart record version {version!r}")
        return CartState.from_dict(envelope.get("state"), self._decimals)

    def _rehydrate(self) -> CartState:
        try:
            raw = self._storage.get_item(self._storage_key)
        except StorageException as exc:
            logger.warning("Cart storage unavailable at startup, starting empty: %s", exc)
            return CartState.empty()

        if raw is None:
            return CartState.empty()

        try:
            state = self._deserialize(raw)
        except CartValidationException as exc:
            logger.warning("Discarding malformed cart record %r: %s", self._storage_key, exc)
            return CartState.empty()

        logger.info("Rehydrated cart with %s line items", len(state.line_items))
        return state

    def _persist(self) -> None:
        try:
            self._storage.set_item(self._storage_key, self._serialize(self._state))
        except (StorageException, TypeError, ValueError) as exc:
            logger.warning("Cart persistence failed; cart will not survive reload: %s", exc)

    def _commit(self, state: CartState) -> None:
        changed = state != self._state
        self._state = state
        self._persist()
        if changed:
            self._notify()

    # ========== SUBSCRIPTIONS ==========

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Call ``listener`` with the new state after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Cart listener %r failed", listener)

    # ========== OPERATIONS ==========

    def add(self, item: CartItemInput | CartLineItem | dict[str, Any], quantity: int | None = None) -> CartLineItem:
        """Add ``item`` to the cart, merging with an existing line of the same id.

        Raises:
            VendorConflictException: cart is locked to another vendor
            CartValidationException: item or quantity is invalid
        """
        # Vendor lock is checked before the rest of the item is validated
        self._check_vendor(_raw_vendor_id(item))

        candidate = CartItemInput.parse(item)
        if quantity is None:
            quantity = candidate.quantity if candidate.quantity is not None else 1
        quantity = require_quantity(quantity)
        if quantity <= 0:
            raise CartValidationException(f"Quantity to add must be positive, got {quantity}")
        self._check_vendor(candidate.vendor_id)

        existing = self._state.find(candidate.id)
        if existing is not None:
            line = existing.with_quantity(existing.quantity + quantity)
            items = tuple(line if i.id == line.id else i for i in self._state.line_items)
        else:
            line = CartLineItem.from_input(candidate, quantity, self._decimals)
            items = self._state.line_items + (line,)

        self._commit(CartState(line_items=items, active_vendor_id=candidate.vendor_id))
        return line

    def _check_vendor(self, vendor_id: Any) -> None:
        active_vendor_id = self._state.active_vendor_id
        if active_vendor_id is None or vendor_id is None or vendor_id == active_vendor_id:
            return
        logger.info(
            "Rejected add: mixed vendors not allowed (active=%s, new=%s)",
            active_vendor_id,
            vendor_id,
        )
        raise VendorConflictException(active_vendor_id, str(vendor_id))

    def remove(self, item_id: str) -> bool:
        """Remove the line with ``item_id``; returns False if it was absent."""
        items = tuple(i for i in self._state.line_items if i.id != item_id)
        removed = len(items) != len(self._state.line_items)
        active_vendor_id = self._state.active_vendor_id if items else None
        self._commit(CartState(line_items=items, active_vendor_id=active_vendor_id))
        return removed

    def set_quantity(self, item_id: str, quantity: int) -> bool:
        """Set an absolute quantity; zero or less removes the line."""
        quantity = require_quantity(quantity)
        if quantity <= 0:
            return self.remove(item_id)

        found = False
        items = []
        for line in self._state.line_items:
            if line.id == item_id:
                line = line.with_quantity(quantity)
                found = True
            items.append(line)
        self._commit(CartState(line_items=tuple(items), active_vendor_id=self._state.active_vendor_id))
        return found

    def clear(self) -> None:
        self._commit(CartState.empty())

    # ========== QUERIES ==========

    def total_item_count(self) -> int:
        return sum(line.quantity for line in self._state.line_items)

    def total_price(self) -> Decimal:
        """Exact sum of line totals; ValueError if it cannot be represented exactly."""
        return sum_money((line.subtotal(self._decimals) for line in self._state.line_items), self._decimals)

    def can_add_from_vendor(self, vendor_id: str) -> bool:
        active_vendor_id = self._state.active_vendor_id
        return active_vendor_id is None or active_vendor_id == vendor_id

    @property
    def state(self) -> CartState:
        return self._state

    @property
    def line_items(self) -> tuple[CartLineItem, ...]:
        return self._state.line_items

    @property
    def active_vendor_id(self) -> str | None:
        return self._state.active_vendor_id

    @property
    def currency_decimals(self) -> int:
        return self._decimals

    def get_item(self, item_id: str) -> CartLineItem | None:
        return self._state.find(item_id)

    def is_empty(self) -> bool:
        return self._state.is_empty

    # ========== LIFECYCLE ==========

    def close(self) -> None:
        self._listeners.clear()
        self.clear_pending_operations()
        self._storage.close()
