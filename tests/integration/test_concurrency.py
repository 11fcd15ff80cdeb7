"""Concurrent checkouts and cart edits against a shared database.

Each worker thread gets its own connection; the tests run with real
transactions so row locks are actually contended.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest
from django.db import connections

from modules.carts.dtos import UpsertCartItemDTO
from modules.carts.models import Cart
from modules.carts.views import build_cart_service
from modules.checkout.dtos import CheckoutDTO
from modules.checkout.views import build_checkout_service
from modules.inventory.exceptions import OutOfStock
from modules.orders.models import Order

pytestmark = [pytest.mark.integration, pytest.mark.django_db(transaction=True)]


def _in_thread(fn):
    def run(*args):
        try:
            return fn(*args)
        finally:
            connections.close_all()

    return run


def _dto(user_id, token=None):
    return CheckoutDTO(
        user_id=user_id,
        attempt_token=token or f"race-{user_id}",
        shipping_address="1 Main St",
        payment_success=True,
    )


@_in_thread
def _checkout(user_id):
    try:
        build_checkout_service().checkout(_dto(user_id))
    except OutOfStock:
        return "out_of_stock"
    return "ok"


def _fill_cart(user_id, product, quantity=1):
    build_cart_service().upsert_item(
        UpsertCartItemDTO(user_id=user_id, product_id=product.id, quantity=quantity)
    )


def _race(fn, args):
    with ThreadPoolExecutor(max_workers=len(args)) as pool:
        return list(pool.map(fn, args))


def test_last_unit_goes_to_exactly_one_shopper(make_product):
    product = make_product("RACE-LAST", stock=1)
    for user_id in ("alice", "bob"):
        _fill_cart(user_id, product)

    results = _race(_checkout, ["alice", "bob"])

    assert sorted(results) == ["ok", "out_of_stock"]
    product.refresh_from_db()
    assert product.stock_quantity == 0
    assert product.sold_out
    assert Order.objects.count() == 1


def test_stock_is_never_oversold(make_product):
    product = make_product("RACE-MANY", stock=5)
    shoppers = [f"shopper-{n}" for n in range(8)]
    for user_id in shoppers:
        _fill_cart(user_id, product)

    results = _race(_checkout, shoppers)

    assert results.count("ok") == 5
    assert results.count("out_of_stock") == 3
    product.refresh_from_db()
    assert product.stock_quantity == 0
    assert Order.objects.count() == 5


def test_concurrent_edits_of_one_cart_are_all_kept(make_product):
    products = [make_product(f"RACE-TAB-{n}", stock=5) for n in range(5)]

    @_in_thread
    def add(product):
        _fill_cart("multi-tab", product, quantity=2)

    _race(add, products)

    cart = Cart.objects.get(user_id="multi-tab")
    assert cart.items.count() == 5
    assert cart.version == 5


def test_double_submit_of_one_token_places_one_order(make_product):
    product = make_product("RACE-TOKEN", stock=10)
    _fill_cart("two-tabs", product, quantity=2)

    @_in_thread
    def submit(_):
        return build_checkout_service().checkout(_dto("two-tabs", token="same")).id

    order_ids = _race(submit, range(4))

    assert len(set(order_ids)) == 1
    product.refresh_from_db()
    assert product.stock_quantity == 8
    assert Order.objects.count() == 1


def test_overlapping_carts_filled_in_opposite_order_both_complete(make_product):
    first = make_product("RACE-PAIR-1", stock=5)
    second = make_product("RACE-PAIR-2", stock=5)
    _fill_cart("forward", first)
    _fill_cart("forward", second)
    _fill_cart("backward", second)
    _fill_cart("backward", first)

    results = _race(_checkout, ["forward", "backward"])

    assert results == ["ok", "ok"]
    for product in (first, second):
        product.refresh_from_db()
        assert product.stock_quantity == 3
    assert Order.objects.count() == 2
