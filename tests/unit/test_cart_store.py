import json
from decimal import Decimal

import pytest

from storefront.cart.discounts import discounted_total
from storefront.cart.store import CART_STORAGE_KEY, CartStore
from storefront.catalog.products import Product


def test_add_merges_lines_for_same_product():
    storage = {}
    cart = CartStore(storage)
    cart.add(1, 2)
    cart.add(1, 3)
    assert cart.get_all() == [{"id": 1, "qty": 5}]
    assert json.loads(storage[CART_STORAGE_KEY]) == [{"id": 1, "qty": 5}]
    assert cart.count() == 5


def test_add_rejects_non_positive_quantity():
    cart = CartStore({})
    with pytest.raises(ValueError):
        cart.add(1, 0)


@pytest.mark.parametrize("raw", ["{not json", '{"id": 1}', "42", json.dumps([{"id": "x", "qty": 1}])])
def test_unreadable_storage_reads_as_empty(raw):
    cart = CartStore({CART_STORAGE_KEY: raw})
    assert cart.get_all() == []
    assert cart.count() == 0
    assert cart.total() == Decimal("0")


def test_set_quantity_and_remove():
    cart = CartStore({})
    cart.add(1)
    cart.add(3, 2)
    cart.set_quantity(3, 4)
    assert cart.get_all() == [{"id": 1, "qty": 1}, {"id": 3, "qty": 4}]
    cart.set_quantity(1, 0)
    assert cart.get_all() == [{"id": 3, "qty": 4}]
    cart.remove(3)
    assert cart.get_all() == []


def test_total_uses_catalog_prices_and_skips_unknown_ids():
    storage = {CART_STORAGE_KEY: json.dumps([{"id": 1, "qty": 2}, {"id": 42, "qty": 1}, {"id": 3, "qty": 1}])}
    cart = CartStore(storage)
    lines = cart.lines()
    assert [line["id"] for line in lines] == [1, 3]
    assert cart.total() == Decimal("46.48")


def test_clear_removes_key():
    storage = {}
    cart = CartStore(storage)
    cart.add(2)
    cart.clear()
    assert CART_STORAGE_KEY not in storage
    assert cart.get_all() == []


def test_checkout_totals_with_injected_prices():
    # 2 x 24.99 + 1 x 3.00 = 52.98; SUN10 -> 47.68
    prices = {
        1: Product(id=1, title="Book", price=Decimal("24.99"), description=""),
        2: Product(id=2, title="Stickers", price=Decimal("3.00"), description=""),
    }
    cart = CartStore({}, lookup=prices.get)
    cart.add(1, 2)
    cart.add(2, 1)

    assert cart.total() == Decimal("52.98")
    assert discounted_total(cart.total(), "SUN10") == (Decimal("5.30"), Decimal("47.68"))
    assert discounted_total(cart.total(), None) == (Decimal("0.00"), Decimal("52.98"))
