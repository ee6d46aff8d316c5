# app/services/cart_service.py
import logging
import uuid
from decimal import Decimal

from tenacity import AsyncRetrying

from app.core.config import Settings, get_settings
from app.core.exceptions import (
    CartItemNotFound,
    GatewayError,
    InvalidQuantity,
    NotAuthenticated,
    ProfileNotFound,
)
from app.core.retry import read_retry
from app.repositories.cart_repo import CartRepository
from app.repositories.user_repo import ProfileRepository
from app.schemas.cart import CartItemRead, CartRead, CartSummary, ProductSnapshot
from app.schemas.user import SessionIdentity
from app.services import pricing

logger = logging.getLogger(__name__)


class CartEngine:
    """
    Owns the single cart of the signed-in user and an in-memory projection
    of its items.

    Responsibilities:
      - resolve identity -> profile -> cart (get-or-create)
      - add with additive merge per variant, overwrite, remove, clear
      - re-read the cart after every write (except clear, which empties
        the projection locally)
      - derived values: count, total, summary

    Failure policy:
      - refresh() is best-effort: gateway errors are logged, the previous
        projection is kept
      - writes raise NotAuthenticated / ProfileNotFound / GatewayError
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        profile_repo: ProfileRepository,
        identity: SessionIdentity | None = None,
        settings: Settings | None = None,
    ):
        self.cart_repo = cart_repo
        self.profile_repo = profile_repo
        self.settings = settings or get_settings()
        self._identity = identity
        self._profile_id: uuid.UUID | None = None

        self.items: list[CartItemRead] = []
        self.loading = False

    # ---- session ----

    @property
    def identity(self) -> SessionIdentity | None:
        return self._identity

    @property
    def signed_in(self) -> bool:
        return self._identity is not None

    async def sign_in(self, identity: SessionIdentity) -> None:
        """Switch to another principal and load their cart."""
        self._identity = identity
        self._profile_id = None
        self.items = []
        await self.refresh()

    def sign_out(self) -> None:
        self._identity = None
        self._profile_id = None
        self.items = []

    # ---- internal helpers ----

    def _require_identity(self) -> SessionIdentity:
        if self._identity is None:
            raise NotAuthenticated()
        return self._identity

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantity(quantity)

    async def _resolve_profile(self) -> uuid.UUID:
        identity = self._require_identity()
        profile_id = await self.profile_repo.get_profile_id(identity.auth_id)
        if profile_id is None:
            raise ProfileNotFound(str(identity.auth_id))
        self._profile_id = profile_id
        return profile_id

    async def _current_cart(self) -> CartRead:
        profile_id = await self._resolve_profile()
        return await self.resolve_cart(profile_id)

    async def _load_items(self) -> list[CartItemRead]:
        cart = await self._current_cart()
        return await self.cart_repo.list_items(cart.id)

    # ---- public operations ----

    async def resolve_cart(self, profile_id: uuid.UUID) -> CartRead:
        """
        Return the cart owned by profile_id, creating it on first access.

        Creation upserts on the unique carts.user_id, so concurrent first
        accesses end up with the same cart.
        """
        cart = await self.cart_repo.find_cart(profile_id)
        if cart is not None:
            return cart

        await self.cart_repo.upsert_cart(profile_id)
        cart = await self.cart_repo.find_cart(profile_id)
        if cart is None:
            raise GatewayError("Failed to create or get cart")

        logger.info("Created cart %s for profile %s", cart.id, profile_id)
        return cart

    async def refresh(self) -> None:
        """
        Reload the projection from the gateway, newest items first.

        Signed out => empty projection. Read failures are retried with
        backoff, then logged; the previous projection is retained.
        """
        if self._identity is None:
            self.items = []
            return

        self.loading = True
        try:
            async for attempt in AsyncRetrying(**read_retry(self.settings)):
                with attempt:
                    items = await self._load_items()
        except ProfileNotFound as e:
            logger.warning("Cart refresh skipped: %s", e)
            return
        except GatewayError:
            logger.exception("Error refreshing cart")
            return
        finally:
            self.loading = False

        self.items = items

    async def add_item(
        self,
        variant_id: uuid.UUID,
        product_ref: str,
        quantity: int,
        snapshot: ProductSnapshot,
    ) -> None:
        """
        Add `quantity` of a variant to the cart.

        If the variant is already in the cart its quantity is increased;
        otherwise a new line is inserted with the snapshot price and
        display fields.

        Raises:
            NotAuthenticated: nobody signed in (no gateway call is made)
            InvalidQuantity: quantity is not a positive integer
            ProfileNotFound, GatewayError: resolution or write failed
        """
        self._require_identity()
        self._check_quantity(quantity)

        cart = await self._current_cart()
        await self._merge_or_insert(cart.id, variant_id, product_ref, quantity, snapshot)
        await self.refresh()

    async def _merge_or_insert(
        self,
        cart_id: uuid.UUID,
        variant_id: uuid.UUID,
        product_ref: str,
        quantity: int,
        snapshot: ProductSnapshot,
    ) -> None:
        attempts = self.settings.CART_MERGE_ATTEMPTS
        for _ in range(attempts):
            existing = await self.cart_repo.find_item(cart_id, variant_id)

            if existing is None:
                try:
                    await self.cart_repo.insert_item(
                        {
                            "cart_id": cart_id,
                            "variant_id": variant_id,
                            "asin": product_ref,
                            "quantity": quantity,
                            "price_at_time": snapshot.price,
                            "product_name": snapshot.name,
                            "product_image": snapshot.image,
                            "variant_weight": snapshot.weight,
                            "variant_weight_unit": snapshot.weight_unit,
                        }
                    )
                    return
                except GatewayError as e:
                    if not e.is_duplicate:
                        raise
                    # another add of this variant landed first; merge into it
                    logger.info("Variant %s inserted concurrently in cart %s", variant_id, cart_id)
                    continue

            new_qty = existing.quantity + quantity
            if await self.cart_repo.compare_and_set_quantity(existing.id, existing.quantity, new_qty):
                logger.info(
                    "Merged variant %s in cart %s: %s -> %s",
                    variant_id,
                    cart_id,
                    existing.quantity,
                    new_qty,
                )
                return

        raise GatewayError(
            f"Cart item for variant {variant_id} kept changing; gave up after {attempts} attempts"
        )

    async def update_quantity(self, item_id: uuid.UUID, quantity: int) -> None:
        """
        Overwrite the quantity of a cart item (no merge). Stock is not checked.
        """
        self._require_identity()
        self._check_quantity(quantity)

        cart = await self._current_cart()
        if not await self.cart_repo.set_quantity(item_id, quantity, cart.id):
            raise CartItemNotFound(str(item_id))
        await self.refresh()

    async def remove_item(self, item_id: uuid.UUID) -> None:
        self._require_identity()

        cart = await self._current_cart()
        if not await self.cart_repo.delete_item(item_id, cart.id):
            raise CartItemNotFound(str(item_id))
        await self.refresh()

    async def clear(self) -> None:
        """
        Delete every item of the cart and empty the projection.

        The cart row is kept. There is no rollback: if the delete succeeds
        but this coroutine is interrupted, the projection is stale until
        the next refresh().
        """
        self._require_identity()

        cart = await self._current_cart()
        await self.cart_repo.delete_items(cart.id)
        self.items = []

    # ---- derived values ----

    def total(self) -> Decimal:
        return pricing.subtotal(self.items)

    @property
    def count(self) -> int:
        return pricing.item_count(self.items)

    def summary(self) -> CartSummary:
        return pricing.summarize(self.items, self.settings)
