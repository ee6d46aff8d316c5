# app/schemas/cart.py
import uuid
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from pydantic import field_validator
from sqlmodel import SQLModel, Field

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """
    Normalize a price coming from JSON or user input to a 2-place Decimal.

    Floats go through str() so 19.99 stays 19.99 instead of its binary
    expansion.

    Raises:
        ValueError: not a finite number, or too large to hold in cents.
    """
    if isinstance(value, bool):
        raise ValueError("invalid money amount")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
        if not amount.is_finite():
            raise ValueError("invalid money amount")
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError) as e:
        raise ValueError("invalid money amount") from e


class ProductSnapshot(SQLModel):
    """
    Display fields and price captured when a variant is added to the cart.

    Later catalog price changes do not alter an existing line item.
    """

    price: Decimal = Field(ge=0)
    name: str = Field(min_length=1)
    image: str | None = None
    weight: Decimal | None = None
    weight_unit: str | None = None

    @field_validator("price", mode="before")
    @classmethod
    def _normalize_price(cls, value):
        return to_money(value)


class CartItemCreate(SQLModel):
    """
    Payload for adding a variant to the cart.
    """

    variant_id: uuid.UUID
    asin: str = Field(min_length=1)
    quantity: int = Field(default=1, gt=0)
    snapshot: ProductSnapshot


class CartItemUpdate(SQLModel):
    """
    Payload for overwriting the quantity of a cart item.
    """

    quantity: int = Field(gt=0)


class CartRead(SQLModel):
    """Cart row: `{ id, user_id }`."""

    id: uuid.UUID
    user_id: uuid.UUID


class CartItemRead(SQLModel):
    """
    Cart item row as stored by the gateway.
    """

    id: uuid.UUID
    cart_id: uuid.UUID
    variant_id: uuid.UUID
    asin: str
    quantity: int
    price_at_time: Decimal
    product_name: str
    product_image: str | None = None
    variant_weight: Decimal | None = None
    variant_weight_unit: str | None = None
    created_at: datetime

    @field_validator("price_at_time", mode="before")
    @classmethod
    def _normalize_price(cls, value):
        return to_money(value)


class CartLineRead(CartItemRead):
    """
    Read model for a single cart item, including line_total.
    """

    line_total: Decimal


class CartSummary(SQLModel):
    """
    Full cart response model with derived totals.
    """

    items: list[CartLineRead]
    total_quantity: int
    subtotal: Decimal
    shipping: Decimal
    grand_total: Decimal
    free_shipping_remaining: Decimal
