"""Unit tests for CartService (the Cart Manager)."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.carts.dtos import MAX_QUANTITY, UpsertCartItemDTO
from modules.carts.models import Cart
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.inventory.exceptions import OutOfStock
from modules.products.exceptions import ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit

USER = "user-1"


@pytest.fixture()
def service():
    return CartService(
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


def _upsert(service, product, quantity, user_id=USER):
    return service.upsert_item(
        UpsertCartItemDTO(user_id=user_id, product_id=product.id, quantity=quantity)
    )


def _quantities(cart):
    return {item.product_id: item.quantity for item in cart.items.all()}


class TestGetCart:
    def test_creates_empty_cart_lazily(self, service):
        cart = service.get_cart(USER)

        assert cart.user_id == USER
        assert list(cart.items.all()) == []
        assert cart.version == 0
        assert Cart.objects.filter(user_id=USER).count() == 1

    def test_returns_same_cart_on_second_read(self, service):
        first = service.get_cart(USER)
        second = service.get_cart(USER)
        assert first.id == second.id


class TestUpsertItem:
    def test_adds_line_and_bumps_version(self, service, make_product):
        product = make_product("CART-01", stock=5)

        cart = _upsert(service, product, 2)

        assert _quantities(cart) == {product.id: 2}
        assert cart.version == 1

    def test_duplicate_add_replaces_quantity(self, service, make_product):
        product = make_product("CART-02", stock=5)

        _upsert(service, product, 2)
        cart = _upsert(service, product, 3)

        assert _quantities(cart) == {product.id: 3}
        assert cart.items.count() == 1

    def test_quantity_above_stock_is_accepted(self, service, make_product):
        product = make_product("CART-03", stock=1)

        cart = _upsert(service, product, 4)

        assert _quantities(cart) == {product.id: 4}
        product.refresh_from_db()
        assert product.stock_quantity == 1

    def test_sold_out_product_is_rejected(self, service, make_product):
        product = make_product("CART-04", stock=0)

        with pytest.raises(OutOfStock):
            _upsert(service, product, 1)

        assert service.get_cart(USER).items.count() == 0

    def test_unknown_product_is_rejected(self, service):
        with pytest.raises(ProductNotFound):
            service.upsert_item(
                UpsertCartItemDTO(user_id=USER, product_id=uuid4(), quantity=1)
            )

    def test_deleted_product_is_rejected(self, service, make_product):
        product = make_product("CART-05")
        product.delete()
        with pytest.raises(ProductNotFound):
            _upsert(service, product, 1)

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_non_positive_quantity_fails_validation(self, quantity):
        with pytest.raises(ValidationError):
            UpsertCartItemDTO(user_id=USER, product_id=uuid4(), quantity=quantity)

    def test_quantity_beyond_column_range_fails_validation(self):
        with pytest.raises(ValidationError):
            UpsertCartItemDTO(
                user_id=USER, product_id=uuid4(), quantity=MAX_QUANTITY + 1
            )

    def test_carts_are_isolated_per_user(self, service, make_product):
        product = make_product("CART-06")

        _upsert(service, product, 1, user_id="alice")
        _upsert(service, product, 5, user_id="bob")

        assert _quantities(service.get_cart("alice")) == {product.id: 1}
        assert _quantities(service.get_cart("bob")) == {product.id: 5}


class TestRemoveItem:
    def test_removes_line(self, service, make_product):
        product = make_product("CART-07")
        _upsert(service, product, 1)

        cart = service.remove_item(USER, product.id)

        assert _quantities(cart) == {}
        assert cart.version == 2

    def test_absent_line_is_a_noop(self, service, make_product):
        product = make_product("CART-08")
        _upsert(service, product, 1)

        cart = service.remove_item(USER, uuid4())

        assert _quantities(cart) == {product.id: 1}
        assert cart.version == 1


class TestClearAndSnapshot:
    def test_clear_empties_but_keeps_cart(self, service, make_product):
        _upsert(service, make_product("CART-09"), 1)
        _upsert(service, make_product("CART-10"), 2)

        service.clear(USER)

        cart = service.get_cart(USER)
        assert cart.items.count() == 0
        assert cart.version == 3

    def test_snapshot_carries_version_and_quote(self, service, make_product):
        a = make_product("CART-11", price="10.00")
        b = make_product("CART-12", price="2.50")
        _upsert(service, a, 2)
        _upsert(service, b, 4)

        snapshot = service.snapshot(USER)

        assert snapshot.version == 2
        assert {line.product_id for line in snapshot.lines} == {a.id, b.id}
        assert snapshot.quote == Decimal("30.00")

    def test_snapshot_marks_deleted_products_unavailable(self, service, make_product):
        product = make_product("CART-13", price="10.00")
        _upsert(service, product, 1)
        product.delete()

        snapshot = service.snapshot(USER)

        assert snapshot.lines[0].available is False
        assert snapshot.quote == Decimal("0.00")


class TestWithMockedRepositories:
    def test_sold_out_check_happens_before_any_lock(self):
        cart_repo = MagicMock()
        product_repo = MagicMock()
        product_repo.get_by_id.return_value = MagicMock(sold_out=True)
        service = CartService(cart_repository=cart_repo, product_repository=product_repo)

        with pytest.raises(OutOfStock):
            service.upsert_item(
                UpsertCartItemDTO(user_id=USER, product_id=uuid4(), quantity=1)
            )

        cart_repo.get_for_update.assert_not_called()
        cart_repo.set_item.assert_not_called()
