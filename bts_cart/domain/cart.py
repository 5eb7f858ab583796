"""Cart line items, cart state and the validated add-to-cart input."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from bts_cart.core.constants import DEFAULT_CURRENCY_DECIMALS
from bts_cart.core.exceptions import CartValidationException
from bts_cart.core.money import MAX_PRICE, format_money, line_total, to_money


def require_quantity(value: Any) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise CartValidationException(f"Quantity must be an integer, got {value!r}")
    return value


class CartItemInput(BaseModel):
    """Candidate line item supplied to ``CartStore.add``."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    id: str = Field(..., min_length=1, description="Item id, distinct per option set")
    name: str = Field("", description="Display name")
    unit_price: Decimal = Field(..., ge=0, lt=MAX_PRICE, description="Price of one unit")
    vendor_id: str = Field(..., min_length=1, description="Restaurant id")
    vendor_name: str = Field("", description="Restaurant display name")
    image_ref: Optional[str] = Field(None, description="Image asset reference")
    selected_options: Optional[tuple[str, ...]] = Field(None, description="Chosen variants")
    notes: Optional[str] = Field(None, description="Customization notes")
    quantity: Optional[int] = Field(None, gt=0, strict=True, description="Units to add")

    @field_validator("unit_price", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> Any:
        """Route floats through ``str`` so 0.1 stays 0.1."""
        if isinstance(v, bool):
            raise ValueError("unit price must be a number")
        if isinstance(v, float):
            return Decimal(str(v))
        return v

    @classmethod
    def parse(cls, item: Any) -> CartItemInput:
        """Build an input from a model, a line item or a mapping."""
        if isinstance(item, CartItemInput):
            return item
        if isinstance(item, CartLineItem):
            data: Mapping[str, Any] = item.to_dict()
        elif isinstance(item, Mapping):
            data = item
        else:
            raise CartValidationException(f"Unsupported cart item type: {type(item).__name__}")
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            raise CartValidationException(f"Invalid cart item: {exc}") from exc


@dataclass(frozen=True)
class CartLineItem:
    """Single purchasable item in the cart."""

    id: str
    name: str
    unit_price: Decimal
    quantity: int
    vendor_id: str
    vendor_name: str
    image_ref: str | None = None
    selected_options: tuple[str, ...] | None = None
    notes: str | None = None

    @classmethod
    def from_input(
        cls,
        item: CartItemInput,
        quantity: int,
        decimals: int = DEFAULT_CURRENCY_DECIMALS,
    ) -> CartLineItem:
        try:
            unit_price = to_money(item.unit_price, decimals)
        except ValueError as exc:
            raise CartValidationException(str(exc)) from exc
        return cls(
            id=item.id,
            name=item.name,
            unit_price=unit_price,
            quantity=quantity,
            vendor_id=item.vendor_id,
            vendor_name=item.vendor_name,
            image_ref=item.image_ref,
            selected_options=tuple(item.selected_options) if item.selected_options is not None else None,
            notes=item.notes,
        )

    def with_quantity(self, quantity: int) -> CartLineItem:
        return replace(self, quantity=quantity)

    def subtotal(self, decimals: int = DEFAULT_CURRENCY_DECIMALS) -> Decimal:
        return line_total(self.unit_price, self.quantity, decimals)

    def to_dict(self, decimals: int = DEFAULT_CURRENCY_DECIMALS) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "unitPrice": format_money(self.unit_price, decimals),
            "quantity": int(self.quantity),
            "vendorId": self.vendor_id,
            "vendorName": self.vendor_name,
        }
        # Optional fields are written only when present
        if self.image_ref is not None:
            data["imageRef"] = self.image_ref
        if self.selected_options is not None:
            data["selectedOptions"] = list(self.selected_options)
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decimals: int = DEFAULT_CURRENCY_DECIMALS) -> CartLineItem:
        if not isinstance(data, Mapping):
            raise CartValidationException("Line item record must be an object")
        try:
            item_id = data["id"]
            vendor_id = data["vendorId"]
            raw_price = data["unitPrice"]
            quantity = data["quantity"]
        except KeyError as exc:
            raise CartValidationException(f"Line item record is missing {exc.args[0]!r}") from exc

        options = data.get("selectedOptions")
        if options is not None:
            if not isinstance(options, list) or not all(isinstance(o, str) for o in options):
                raise CartValidationException("selectedOptions must be a list of strings")
            options = tuple(options)

        for name in ("imageRef", "notes"):
            value = data.get(name)
            if value is not None and not isinstance(value, str):
                raise CartValidationException(f"{name} must be a string")

        if not isinstance(item_id, str) or not isinstance(vendor_id, str):
            raise CartValidationException("id and vendorId must be strings")

        try:
            unit_price = to_money(raw_price, decimals)
        except ValueError as exc:
            raise CartValidationException(str(exc)) from exc

        return cls(
            id=item_id,
            name=str(data.get("name", "")),
            unit_price=unit_price,
            quantity=require_quantity(quantity),
            vendor_id=vendor_id,
            vendor_name=str(data.get("vendorName", "")),
            image_ref=data.get("imageRef"),
            selected_options=options,
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class CartState:
    """Aggregate root: ordered line items plus the vendor the cart is locked to."""

    line_items: tuple[CartLineItem, ...] = field(default_factory=tuple)
    active_vendor_id: str | None = None

    @classmethod
    def empty(cls) -> CartState:
        return cls()

    @classmethod
    def from_items(cls, items: Iterable[CartLineItem]) -> CartState:
        """Build a state whose active vendor is derived from ``items``."""
        line_items = tuple(items)
        vendor_id = line_items[0].vendor_id if line_items else None
        state = cls(line_items=line_items, active_vendor_id=vendor_id)
        state.validate()
        return state

    @property
    def is_empty(self) -> bool:
        return not self.line_items

    def find(self, item_id: str) -> CartLineItem | None:
        for item in self.line_items:
            if item.id == item_id:
                return item
        return None

    def validate(self) -> None:
        """Raise ``CartValidationException`` if any cart invariant is broken."""
        if not self.line_items:
            if self.active_vendor_id is not None:
                raise CartValidationException("Empty cart must not have an active vendor")
            return

        if self.active_vendor_id is None:
            raise CartValidationException("Non-empty cart must have an active vendor")

        seen: set[str] = set()
        for item in self.line_items:
            if item.vendor_id != self.active_vendor_id:
                raise CartValidationException(
                    f"Item {item.id} belongs to vendor {item.vendor_id}, "
                    f"cart is locked to {self.active_vendor_id}"
                )
            require_quantity(item.quantity)
            if item.quantity <= 0:
                raise CartValidationException(f"Item {item.id} has non-positive quantity")
            if item.unit_price < 0:
                raise CartValidationException(f"Item {item.id} has a negative price")
            if item.id in seen:
                raise CartValidationException(f"Duplicate line item id {item.id}")
            seen.add(item.id)

    def to_dict(self, decimals: int = DEFAULT_CURRENCY_DECIMALS) -> dict[str, Any]:
        return {
            "lineItems": [item.to_dict(decimals) for item in self.line_items],
            "activeVendorId": self.active_vendor_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], decimals: int = DEFAULT_CURRENCY_DECIMALS) -> CartState:
        if not isinstance(data, Mapping):
            raise CartValidationException("Cart record must be an object")
        raw_items = data.get("lineItems")
        if not isinstance(raw_items, list):
            raise CartValidationException("lineItems must be a list")
        vendor_id = data.get("activeVendorId")
        if vendor_id is not None and not isinstance(vendor_id, str):
            raise CartValidationException("activeVendorId must be a string or null")

        state = cls(
            line_items=tuple(CartLineItem.from_dict(raw, decimals) for raw in raw_items),
            active_vendor_id=vendor_id,
        )
        state.validate()
        return state
