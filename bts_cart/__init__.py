"""Client-side shopping cart store for the BTS food-delivery storefront."""
from __future__ import annotations

from bts_cart.core.exceptions import (
    BtsCartException,
    CartValidationException,
    StorageException,
    VendorConflictException,
)
from bts_cart.domain.cart import CartItemInput, CartLineItem, CartState
from bts_cart.services.cart_store import CartStore

__all__ = [
    "BtsCartException",
    "CartItemInput",
    "CartLineItem",
    "CartState",
    "CartStore",
    "CartValidationException",
    "StorageException",
    "VendorConflictException",
]
