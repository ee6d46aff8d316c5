# app/routers/cart.py
import uuid

from fastapi import APIRouter, Depends
from supabase import AsyncClient

from app.core.auth import get_identity
from app.core.config import get_settings
from app.core.supabase_client import get_gateway_client
from app.repositories.cart_repo import CartRepository
from app.repositories.user_repo import ProfileRepository
from app.schemas.cart import CartSummary, CartItemCreate, CartItemUpdate
from app.schemas.user import SessionIdentity
from app.services.cart_service import CartEngine

router = APIRouter(prefix="/cart", tags=["Cart"])


def get_cart_repository(client: AsyncClient = Depends(get_gateway_client)) -> CartRepository:
    return CartRepository(client)


def get_profile_repository(client: AsyncClient = Depends(get_gateway_client)) -> ProfileRepository:
    return ProfileRepository(client)


def get_cart_engine(
    identity: SessionIdentity | None = Depends(get_identity),
    cart_repo: CartRepository = Depends(get_cart_repository),
    profile_repo: ProfileRepository = Depends(get_profile_repository),
) -> CartEngine:
    """One engine per request, bound to the caller's identity (None for guests)."""
    return CartEngine(cart_repo, profile_repo, identity, get_settings())


@router.get("", response_model=CartSummary)
async def get_my_cart(engine: CartEngine = Depends(get_cart_engine)):
    """
    Get current user's cart summary.

    Guests get an empty cart. A failed read also yields whatever could be
    loaded (possibly empty) instead of an error.
    """
    await engine.refresh()
    return engine.summary()


@router.post("/items", response_model=CartSummary)
async def add_to_cart(
    payload: CartItemCreate,
    engine: CartEngine = Depends(get_cart_engine),
):
    """
    Add a variant to the current user's cart, merging with an existing line.

    Returns the updated cart summary.
    """
    await engine.add_item(payload.variant_id, payload.asin, payload.quantity, payload.snapshot)
    return engine.summary()


@router.patch("/items/{item_id}", response_model=CartSummary)
async def update_cart_item(
    item_id: uuid.UUID,
    payload: CartItemUpdate,
    engine: CartEngine = Depends(get_cart_engine),
):
    """
    Set the quantity of a cart item.

    Returns the updated cart summary.
    """
    await engine.update_quantity(item_id, payload.quantity)
    return engine.summary()


@router.delete("/items/{item_id}", response_model=CartSummary)
async def remove_cart_item(
    item_id: uuid.UUID,
    engine: CartEngine = Depends(get_cart_engine),
):
    """
    Remove an item from the cart.

    Returns the updated cart summary.
    """
    await engine.remove_item(item_id)
    return engine.summary()


@router.delete("", response_model=CartSummary)
async def clear_cart(engine: CartEngine = Depends(get_cart_engine)):
    """
    Clear the entire cart.

    Returns an empty cart summary.
    """
    await engine.clear()
    return engine.summary()
