"""Services package."""

from .cart_store import CartStore

__all__ = ["CartStore"]
