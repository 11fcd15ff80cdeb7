from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.products.models import Product

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_throttle_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def shopper():
    return User.objects.create_user(username="shopper", password="testpass123")


@pytest.fixture()
def other_shopper():
    return User.objects.create_user(username="other", password="testpass123")


@pytest.fixture()
def admin_user():
    return User.objects.create_user(
        username="fulfillment", password="testpass123", is_staff=True
    )


@pytest.fixture()
def auth_client(shopper):
    """APIClient force-authenticated as ``shopper``."""
    client = APIClient()
    client.force_authenticate(user=shopper)
    return client


@pytest.fixture()
def make_product():
    """Factory for catalog rows: ``make_product("SKU-1", stock=3, price="9.90")``."""

    def _make(sku, stock=10, price="10.00", name=None):
        return Product.objects.create(
            sku=sku,
            name=name or f"Product {sku}",
            price=Decimal(price),
            stock_quantity=stock,
        )

    return _make
