# app/repositories/cart_repo.py
import uuid
from typing import Any

from supabase import AsyncClient

from app.repositories.gateway import parse_row, run_query
from app.schemas.cart import CartItemRead, CartRead


class CartRepository:
    """
    Data access layer for carts and cart items on the Supabase row store.

    Relies on two unique constraints (see app/models/cart.py):
      - carts.user_id
      - cart_items (cart_id, variant_id)
    """

    CARTS = "carts"
    ITEMS = "cart_items"

    def __init__(self, client: AsyncClient):
        self.client = client

    # ----- Carts -----

    async def find_cart(self, owner_id: uuid.UUID) -> CartRead | None:
        rows = await run_query(
            self.client.table(self.CARTS)
            .select("id, user_id")
            .eq("user_id", str(owner_id))
            .limit(1),
            "fetch cart",
        )
        return parse_row(CartRead, rows[0], "fetch cart") if rows else None

    async def upsert_cart(self, owner_id: uuid.UUID) -> None:
        """
        Insert a cart for owner_id unless one exists.

        Duplicates are ignored, so the row may not be returned; callers
        re-read with find_cart.
        """
        await run_query(
            self.client.table(self.CARTS).upsert(
                {"user_id": str(owner_id)},
                on_conflict="user_id",
                ignore_duplicates=True,
            ),
            "create cart",
        )

    # ----- Items -----

    async def list_items(self, cart_id: uuid.UUID) -> list[CartItemRead]:
        """All items of a cart, newest first."""
        rows = await run_query(
            self.client.table(self.ITEMS)
            .select("*")
            .eq("cart_id", str(cart_id))
            .order("created_at", desc=True),
            "fetch cart items",
        )
        return [parse_row(CartItemRead, r, "fetch cart items") for r in rows]

    async def find_item(self, cart_id: uuid.UUID, variant_id: uuid.UUID) -> CartItemRead | None:
        rows = await run_query(
            self.client.table(self.ITEMS)
            .select("*")
            .eq("cart_id", str(cart_id))
            .eq("variant_id", str(variant_id))
            .limit(1),
            "fetch cart item",
        )
        return parse_row(CartItemRead, rows[0], "fetch cart item") if rows else None

    async def insert_item(self, values: dict[str, Any]) -> CartItemRead:
        """
        Insert a new cart item and return the stored row.

        Raises:
            GatewayError: with is_duplicate set if (cart_id, variant_id) exists.
        """
        rows = await run_query(
            self.client.table(self.ITEMS).insert(_jsonable(values)),
            "insert cart item",
        )
        return parse_row(CartItemRead, rows[0], "insert cart item")

    async def compare_and_set_quantity(
        self,
        item_id: uuid.UUID,
        expected: int,
        quantity: int,
    ) -> bool:
        """
        Set quantity only if it still equals `expected`.

        Returns:
            True if the row was updated, False if another writer got there first.
        """
        rows = await run_query(
            self.client.table(self.ITEMS)
            .update({"quantity": quantity})
            .eq("id", str(item_id))
            .eq("quantity", expected),
            "update cart item quantity",
        )
        return bool(rows)

    async def set_quantity(self, item_id: uuid.UUID, quantity: int, cart_id: uuid.UUID) -> bool:
        """Overwrite quantity. Returns False if the cart has no item with this id."""
        rows = await run_query(
            self.client.table(self.ITEMS)
            .update({"quantity": quantity})
            .eq("id", str(item_id))
            .eq("cart_id", str(cart_id)),
            "update cart item quantity",
        )
        return bool(rows)

    async def delete_item(self, item_id: uuid.UUID, cart_id: uuid.UUID) -> bool:
        """Delete one item. Returns False if the cart has no item with this id."""
        rows = await run_query(
            self.client.table(self.ITEMS)
            .delete()
            .eq("id", str(item_id))
            .eq("cart_id", str(cart_id)),
            "remove cart item",
        )
        return bool(rows)

    async def delete_items(self, cart_id: uuid.UUID) -> None:
        """Delete every item of a cart; the cart row itself is kept."""
        await run_query(
            self.client.table(self.ITEMS).delete().eq("cart_id", str(cart_id)),
            "clear cart",
        )


def _jsonable(values: dict[str, Any]) -> dict[str, Any]:
    # UUIDs and Decimals are sent as strings; Postgres casts them.
    out = {}
    for key, value in values.items():
        if value is None or isinstance(value, (str, int, bool)):
            out[key] = value
        else:
            out[key] = str(value)
    return out
