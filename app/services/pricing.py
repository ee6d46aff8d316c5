# app/services/pricing.py
from decimal import Decimal
from typing import Iterable

from app.core.config import Settings
from app.schemas.cart import CartItemRead, CartLineRead, CartSummary

ZERO = Decimal("0.00")


def line_total(item: CartItemRead) -> Decimal:
    return item.price_at_time * item.quantity


def subtotal(items: Iterable[CartItemRead]) -> Decimal:
    """Sum of price_at_time * quantity across items."""
    return sum((line_total(it) for it in items), ZERO)


def item_count(items: Iterable[CartItemRead]) -> int:
    """Sum of quantities; used for the cart badge."""
    return sum(it.quantity for it in items)


def shipping_cost(sub: Decimal, count: int, settings: Settings) -> Decimal:
    """
    Flat fee unless the subtotal exceeds the free shipping threshold.

    An empty cart ships nothing and costs nothing.
    """
    if count == 0 or sub > settings.FREE_SHIPPING_THRESHOLD:
        return ZERO
    return settings.SHIPPING_FEE


def summarize(items: list[CartItemRead], settings: Settings) -> CartSummary:
    """
    Build the cart summary view model:
      - items with line_total
      - total_quantity
      - subtotal / shipping / grand_total
      - how much more is needed for free shipping
    """
    lines: list[CartLineRead] = []
    for it in items:
        lines.append(CartLineRead(**it.model_dump(), line_total=line_total(it)))

    sub = subtotal(items)
    count = item_count(items)
    shipping = shipping_cost(sub, count, settings)

    remaining = ZERO
    if count and sub <= settings.FREE_SHIPPING_THRESHOLD:
        # "exceeds" is strict, so reaching the threshold is one cent short
        remaining = settings.FREE_SHIPPING_THRESHOLD - sub + Decimal("0.01")

    return CartSummary(
        items=lines,
        total_quantity=count,
        subtotal=sub,
        shipping=shipping,
        grand_total=sub + shipping,
        free_shipping_remaining=remaining,
    )
