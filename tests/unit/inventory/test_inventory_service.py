"""Unit tests for InventoryService (the Inventory Store)."""

from __future__ import annotations

import pytest

from modules.inventory.exceptions import InsufficientStock, InvalidQuantity
from modules.inventory.services import InventoryService
from modules.products.exceptions import ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def service():
    return InventoryService(product_repository=ProductDjangoRepository())


class TestGetAvailable:
    def test_returns_current_stock(self, service, make_product):
        product = make_product("INV-01", stock=7)
        assert service.get_available(str(product.id)) == 7

    def test_unknown_product_raises(self, service):
        with pytest.raises(ProductNotFound):
            service.get_available("0190a3c4-0000-7000-8000-000000000000")

    def test_deleted_product_raises(self, service, make_product):
        product = make_product("INV-02")
        product.delete()
        with pytest.raises(ProductNotFound):
            service.get_available(str(product.id))


class TestDecrement:
    def test_subtracts_and_returns_locked_product(self, service, make_product):
        product = make_product("INV-03", stock=5, price="12.50")

        locked = service.decrement(str(product.id), 2)

        assert locked.stock_quantity == 3
        assert str(locked.price) == "12.50"
        product.refresh_from_db()
        assert product.stock_quantity == 3
        assert product.sold_out is False

    def test_last_unit_sets_sold_out(self, service, make_product):
        product = make_product("INV-04", stock=1)

        service.decrement(str(product.id), 1)

        product.refresh_from_db()
        assert product.stock_quantity == 0
        assert product.sold_out is True

    def test_insufficient_stock_changes_nothing(self, service, make_product):
        product = make_product("INV-05", stock=2)

        with pytest.raises(InsufficientStock) as exc_info:
            service.decrement(str(product.id), 3)

        assert exc_info.value.requested == 3
        assert exc_info.value.available == 2
        product.refresh_from_db()
        assert product.stock_quantity == 2

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_rejects_non_positive_quantity(self, service, make_product, quantity):
        product = make_product("INV-06", stock=2)
        with pytest.raises(InvalidQuantity):
            service.decrement(str(product.id), quantity)

    def test_deleted_product_raises(self, service, make_product):
        product = make_product("INV-07", stock=2)
        product.delete()
        with pytest.raises(ProductNotFound):
            service.decrement(str(product.id), 1)


class TestIncrement:
    def test_restores_stock_and_clears_sold_out(self, service, make_product):
        product = make_product("INV-08", stock=0)

        service.increment(str(product.id), 2)

        product.refresh_from_db()
        assert product.stock_quantity == 2
        assert product.sold_out is False

    def test_rejects_non_positive_quantity(self, service, make_product):
        product = make_product("INV-09", stock=0)
        with pytest.raises(InvalidQuantity):
            service.increment(str(product.id), 0)
