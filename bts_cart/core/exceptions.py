"""Custom exceptions for the cart store."""
from __future__ import annotations


class BtsCartException(Exception):
    """Base exception for all cart errors."""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class VendorConflictException(BtsCartException):
    """Item belongs to a different vendor than the one the cart is locked to."""

    def __init__(self, active_vendor_id: str, requested_vendor_id: str) -> None:
        super().__init__(
            f"Cart holds items from vendor {active_vendor_id}; "
            f"clear your cart to order from a different restaurant ({requested_vendor_id})"
        )
        self.active_vendor_id = active_vendor_id
        self.requested_vendor_id = requested_vendor_id


class CartValidationException(BtsCartException):
    """Invalid cart input or broken cart invariant."""

    pass


class StorageException(BtsCartException):
    """Durable storage read/write errors."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class ConfigurationException(BtsCartException):
    """Configuration errors."""

    pass
