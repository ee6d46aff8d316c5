import asyncio
import os
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-for-cart-service")

from app.core.config import Settings
from app.core.exceptions import GatewayError
from app.schemas.cart import CartItemRead, CartRead, ProductSnapshot
from app.schemas.user import SessionIdentity
from app.services.cart_service import CartEngine

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeGateway:
    """
    In-memory stand-in for the Supabase tables, with the same unique
    constraints: one cart per user_id, one item per (cart_id, variant_id).

    Every call yields to the event loop once so concurrent callers interleave
    the way round trips would.
    """

    def __init__(self):
        self.profiles: dict[uuid.UUID, uuid.UUID] = {}
        self.carts: dict[uuid.UUID, CartRead] = {}
        self.items: dict[uuid.UUID, CartItemRead] = {}
        self.writes: list[str] = []
        self.calls: list[str] = []
        self.read_failures = 0
        self.write_failures = 0
        self._clock = 0

    def add_profile(self, auth_id: uuid.UUID | None = None) -> tuple[uuid.UUID, uuid.UUID]:
        auth_id = auth_id or uuid.uuid4()
        profile_id = uuid.uuid4()
        self.profiles[auth_id] = profile_id
        return auth_id, profile_id

    async def _read(self, name: str):
        self.calls.append(name)
        await asyncio.sleep(0)
        if self.read_failures:
            self.read_failures -= 1
            raise GatewayError(f"Failed to {name}: connection reset")

    async def _write(self, name: str):
        self.calls.append(name)
        await asyncio.sleep(0)
        if self.write_failures:
            self.write_failures -= 1
            raise GatewayError(f"Failed to {name}: connection reset")
        self.writes.append(name)


class FakeProfileRepository:
    def __init__(self, gateway: FakeGateway):
        self.gw = gateway

    async def get_profile_id(self, auth_id):
        await self.gw._read("fetch user profile")
        return self.gw.profiles.get(auth_id)


class FakeCartRepository:
    def __init__(self, gateway: FakeGateway):
        self.gw = gateway

    async def find_cart(self, owner_id):
        await self.gw._read("fetch cart")
        for cart in self.gw.carts.values():
            if cart.user_id == owner_id:
                return cart
        return None

    async def upsert_cart(self, owner_id):
        await self.gw._write("create cart")
        if any(c.user_id == owner_id for c in self.gw.carts.values()):
            return
        cart = CartRead(id=uuid.uuid4(), user_id=owner_id)
        self.gw.carts[cart.id] = cart

    async def list_items(self, cart_id):
        await self.gw._read("fetch cart items")
        rows = [it for it in self.gw.items.values() if it.cart_id == cart_id]
        return sorted(rows, key=lambda it: it.created_at, reverse=True)

    async def find_item(self, cart_id, variant_id):
        await self.gw._read("fetch cart item")
        for it in self.gw.items.values():
            if it.cart_id == cart_id and it.variant_id == variant_id:
                return it
        return None

    async def insert_item(self, values):
        await self.gw._write("insert cart item")
        for it in self.gw.items.values():
            if it.cart_id == values["cart_id"] and it.variant_id == values["variant_id"]:
                raise GatewayError(
                    "Failed to insert cart item: duplicate key value",
                    code=GatewayError.UNIQUE_VIOLATION,
                )
        self.gw._clock += 1
        item = CartItemRead(
            id=uuid.uuid4(),
            created_at=BASE_TIME + timedelta(seconds=self.gw._clock),
            **values,
        )
        self.gw.items[item.id] = item
        return item

    async def compare_and_set_quantity(self, item_id, expected, quantity):
        await self.gw._write("update cart item quantity")
        item = self.gw.items.get(item_id)
        if item is None or item.quantity != expected:
            return False
        self.gw.items[item_id] = item.model_copy(update={"quantity": quantity})
        return True

    async def set_quantity(self, item_id, quantity, cart_id):
        await self.gw._write("update cart item quantity")
        item = self.gw.items.get(item_id)
        if item is None or item.cart_id != cart_id:
            return False
        self.gw.items[item_id] = item.model_copy(update={"quantity": quantity})
        return True

    async def delete_item(self, item_id, cart_id):
        await self.gw._write("remove cart item")
        item = self.gw.items.get(item_id)
        if item is None or item.cart_id != cart_id:
            return False
        del self.gw.items[item_id]
        return True

    async def delete_items(self, cart_id):
        await self.gw._write("clear cart")
        for item_id in [k for k, v in self.gw.items.items() if v.cart_id == cart_id]:
            del self.gw.items[item_id]


@pytest.fixture()
def settings() -> Settings:
    return Settings(READ_RETRY_ATTEMPTS=2, READ_RETRY_MAX_WAIT=0)


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def identity(gateway: FakeGateway) -> SessionIdentity:
    auth_id, _ = gateway.add_profile()
    return SessionIdentity(auth_id=auth_id, email="shopper@example.com")


@pytest.fixture()
def make_engine(gateway: FakeGateway, settings: Settings):
    def _make(identity: SessionIdentity | None = None) -> CartEngine:
        return CartEngine(
            FakeCartRepository(gateway),
            FakeProfileRepository(gateway),
            identity,
            settings,
        )

    return _make


@pytest.fixture()
def engine(make_engine, identity) -> CartEngine:
    return make_engine(identity)


@pytest.fixture()
def snapshot():
    def _snapshot(price: str = "199", name: str = "Basmati Rice") -> ProductSnapshot:
        return ProductSnapshot(
            price=Decimal(price),
            name=name,
            image="https://cdn.example.com/rice.png",
            weight=Decimal("500"),
            weight_unit="g",
        )

    return _snapshot


@pytest.fixture()
def client(gateway: FakeGateway):
    from fastapi.testclient import TestClient

    from app.main import app
    from app.routers.cart import get_cart_repository, get_profile_repository

    app.dependency_overrides[get_cart_repository] = lambda: FakeCartRepository(gateway)
    app.dependency_overrides[get_profile_repository] = lambda: FakeProfileRepository(gateway)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_token():
    from jose import jwt

    def _token(sub: str, email: str = "shopper@example.com", expires_in: int = 3600) -> str:
        now = int(datetime.now(timezone.utc).timestamp())
        claims = {"sub": sub, "email": email, "aud": "authenticated", "exp": now + expires_in}
        return jwt.encode(claims, os.environ["SUPABASE_JWT_SECRET"], algorithm="HS256")

    return _token


@pytest.fixture()
def auth_headers(identity: SessionIdentity, make_token) -> dict:
    return {"Authorization": f"Bearer {make_token(str(identity.auth_id))}"}
