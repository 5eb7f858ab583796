"""Domain package."""

from .cart import CartItemInput, CartLineItem, CartState
from .operations import CartSnapshot, PendingOperation, PendingOperationType

__all__ = [
    "CartItemInput",
    "CartLineItem",
    "CartState",
    "CartSnapshot",
    "PendingOperation",
    "PendingOperationType",
]
