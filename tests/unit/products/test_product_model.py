"""Unit tests for the Product model invariants."""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction

from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit


class TestSoldOutMirror:
    def test_new_product_with_stock_is_not_sold_out(self, make_product):
        product = make_product("MIRROR-01", stock=3)
        assert product.sold_out is False

    def test_new_product_without_stock_is_sold_out(self, make_product):
        product = make_product("MIRROR-02", stock=0)
        assert product.sold_out is True

    def test_partial_update_keeps_flag_in_sync(self, make_product):
        product = make_product("MIRROR-03", stock=1)
        product.stock_quantity = 0
        product.save(update_fields=["stock_quantity"])

        product.refresh_from_db()
        assert product.sold_out is True

    def test_database_rejects_inconsistent_flag(self, make_product):
        product = make_product("MIRROR-04", stock=5)
        with pytest.raises(IntegrityError), transaction.atomic():
            Product.objects.filter(id=product.id).update(sold_out=True)

    def test_database_rejects_negative_stock(self, make_product):
        product = make_product("MIRROR-05", stock=5)
        with pytest.raises(IntegrityError), transaction.atomic():
            Product.objects.filter(id=product.id).update(stock_quantity=-1)


class TestSkuNormalisation:
    def test_sku_is_uppercased(self, make_product):
        product = make_product("  lower-sku ")
        assert product.sku == "LOWER-SKU"

    def test_price_must_be_positive(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            Product.objects.create(
                sku="FREE-01", name="Free", price=Decimal("0.00"), stock_quantity=1
            )


class TestProductRepository:
    def test_soft_deleted_product_is_invisible(self, make_product):
        product = make_product("GONE-01")
        product.delete()

        repo = ProductDjangoRepository()
        assert repo.get_by_id(str(product.id)) is None
        assert repo.existing_ids([str(product.id)]) == set()

    def test_malformed_id_returns_none(self):
        assert ProductDjangoRepository().get_by_id("not-a-uuid") is None

    def test_existing_ids_filters_unknown(self, make_product):
        kept = make_product("KEEP-01")
        gone = make_product("GONE-02")
        gone.delete()

        ids = ProductDjangoRepository().existing_ids(
            [str(kept.id), str(gone.id), "0190a3c4-0000-7000-8000-000000000000"]
        )
        assert ids == {str(kept.id)}

    def test_get_by_sku_is_case_insensitive_on_input(self, make_product):
        product = make_product("CASE-01")
        assert ProductDjangoRepository().get_by_sku("case-01") == product
