"""Fixed-point money helpers for cart totals.

Prices are ``Decimal`` values quantized to the currency's minor units
(two decimals by default) and capped below ``10**MAX_PRICE_INTEGER_DIGITS``.
Line totals are computed in integer minor units; a total too wide for
``TOTAL_PRECISION_DIGITS`` raises ``ValueError`` instead of being rounded.
"""
from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Context, Decimal, Inexact, InvalidOperation, Overflow
from typing import Any

from bts_cart.core.constants import (
    DEFAULT_CURRENCY_DECIMALS,
    MAX_PRICE_INTEGER_DIGITS,
    TOTAL_PRECISION_DIGITS,
)

MAX_PRICE = Decimal(10) ** MAX_PRICE_INTEGER_DIGITS


def _total_context() -> Context:
    return Context(
        prec=TOTAL_PRECISION_DIGITS,
        rounding=ROUND_HALF_UP,
        traps=[InvalidOperation, Inexact, Overflow],
    )


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("boolean is not a money amount")
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"invalid money amount: {value!r}")


def minor_unit(decimals: int = DEFAULT_CURRENCY_DECIMALS) -> Decimal:
    return Decimal(1).scaleb(-decimals)


def to_money(value: Any, decimals: int = DEFAULT_CURRENCY_DECIMALS) -> Decimal:
    """Parse ``value`` into a non-negative price quantized to minor units."""
    amount = _to_decimal(value)
    if not amount.is_finite():
        raise ValueError(f"invalid money amount: {value!r}")
    if amount < 0:
        raise ValueError(f"money amount must not be negative: {value!r}")
    if amount >= MAX_PRICE:
        raise ValueError(f"money amount too large: {value!r}")
    try:
        amount = amount.quantize(minor_unit(decimals), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"invalid money amount: {value!r}")
    if amount >= MAX_PRICE:
        raise ValueError(f"money amount too large: {value!r}")
    return amount


def to_minor_units(amount: Any, decimals: int = DEFAULT_CURRENCY_DECIMALS) -> int:
    """Convert a price to an integer count of minor units (e.g. cents)."""
    return int(to_money(amount, decimals).scaleb(decimals))


def from_minor_units(units: int, decimals: int = DEFAULT_CURRENCY_DECIMALS) -> Decimal:
    try:
        return Decimal(units).scaleb(-decimals, context=_total_context())
    except (Inexact, Overflow):
        raise ValueError(f"money total too large to represent exactly: {units} minor units")


def line_total(unit_price: Decimal, quantity: int, decimals: int = DEFAULT_CURRENCY_DECIMALS) -> Decimal:
    return from_minor_units(to_minor_units(unit_price, decimals) * quantity, decimals)


def sum_money(amounts: Iterable[Decimal], decimals: int = DEFAULT_CURRENCY_DECIMALS) -> Decimal:
    context = _total_context()
    total = Decimal(0)
    try:
        for amount in amounts:
            total = context.add(total, amount)
        return total.quantize(minor_unit(decimals), context=context)
    except (Inexact, InvalidOperation, Overflow):
        raise ValueError("money total too large to represent exactly")


def format_money(amount: Decimal, decimals: int = DEFAULT_CURRENCY_DECIMALS) -> str:
    return format(to_money(amount, decimals), "f")
