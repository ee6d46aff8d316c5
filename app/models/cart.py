# app/models/cart.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import SQLModel, Field


class Cart(SQLModel, table=True):
    """
    The single active shopping cart of one profile.

    Created lazily on first cart access, never deleted. Clearing a cart
    removes its items but keeps this row.
    """

    __tablename__ = "carts"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    # Unique: get-or-create upserts on this column.
    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        unique=True,
        index=True,
        description="Owning profile id (users.id, not the auth id)",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class CartItem(SQLModel, table=True):
    """
    One line in a cart.
    One cart cannot have 2 rows for the same variant.
    """

    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "variant_id", name="uq_cart_items_cart_variant"),
        CheckConstraint("quantity > 0", name="check_cart_item_quantity_positive"),
    )

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    cart_id: uuid.UUID = Field(
        foreign_key="carts.id",
        index=True,
        ondelete="CASCADE",
    )

    variant_id: uuid.UUID = Field(index=True)

    asin: str = Field(description="Catalog reference of the parent product")

    quantity: int = Field(gt=0)

    price_at_time: Decimal = Field(
        max_digits=12,
        decimal_places=2,
        description="Price when added to cart",
    )

    product_name: str
    product_image: str | None = None
    variant_weight: Decimal | None = Field(default=None, max_digits=10, decimal_places=2)
    variant_weight_unit: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
