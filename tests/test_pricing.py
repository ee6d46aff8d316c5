import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.schemas.cart import CartItemRead, ProductSnapshot, to_money
from app.services import pricing


def _item(price, quantity) -> CartItemRead:
    return CartItemRead(
        id=uuid.uuid4(),
        cart_id=uuid.uuid4(),
        variant_id=uuid.uuid4(),
        asin="B0TEST",
        quantity=quantity,
        price_at_time=price,
        product_name="Test",
        created_at=datetime.now(timezone.utc),
    )


def test_subtotal_and_count():
    items = [_item("100", 2), _item("250", 1)]

    assert pricing.subtotal(items) == Decimal("450.00")
    assert pricing.item_count(items) == 3


def test_empty_cart_totals_are_zero(settings):
    summary = pricing.summarize([], settings)

    assert summary.subtotal == 0
    assert summary.total_quantity == 0
    assert summary.shipping == 0
    assert summary.grand_total == 0
    assert summary.free_shipping_remaining == 0


@pytest.mark.parametrize(
    "price, expected_shipping",
    [
        ("499.99", Decimal("50")),
        ("500.00", Decimal("50")),
        ("500.01", Decimal("0")),
    ],
)
def test_shipping_is_free_only_above_threshold(settings, price, expected_shipping):
    summary = pricing.summarize([_item(price, 1)], settings)

    assert summary.shipping == expected_shipping
    assert summary.grand_total == Decimal(price) + expected_shipping


def test_free_shipping_remaining(settings):
    summary = pricing.summarize([_item("450", 1)], settings)

    assert summary.free_shipping_remaining == Decimal("50.01")


def test_float_prices_do_not_drift():
    items = [_item(0.1, 3), _item(0.2, 1)]

    assert pricing.subtotal(items) == Decimal("0.50")


def test_snapshot_price_rounds_half_up():
    snap = ProductSnapshot(price="19.995", name="Ghee")

    assert snap.price == Decimal("20.00")


@pytest.mark.parametrize("value", ["abc", None, "NaN", "-Infinity", 1e30, True])
def test_to_money_rejects_non_amounts(value):
    with pytest.raises(ValueError):
        to_money(value)
