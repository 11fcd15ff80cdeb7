"""Integration tests for the order ledger endpoints."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from rest_framework.test import APIClient

from modules.core.models import OutboxEvent
from modules.orders.dtos import AppendOrderDTO, OrderLineDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderLedgerService

pytestmark = pytest.mark.integration

ORDERS_URL = "/api/v1/orders/"


@pytest.fixture()
def place_order(make_product):
    ledger = OrderLedgerService(order_repository=OrderDjangoRepository())
    product = make_product("ORD-API-1", price="10.00")

    def _place(user, token, quantity=1):
        return ledger.append(
            AppendOrderDTO(
                user_id=str(user.pk),
                shipping_address="1 Main St",
                idempotency_key=token,
                items=[
                    OrderLineDTO(
                        product_id=product.id,
                        quantity=quantity,
                        unit_price=Decimal("10.00"),
                    )
                ],
            )
        )

    return _place


@pytest.fixture()
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


class TestListOrders:
    def test_lists_own_orders_newest_first(self, auth_client, shopper, other_shopper, place_order):
        older = place_order(shopper, "t1")
        newer = place_order(shopper, "t2")
        place_order(other_shopper, "t3")

        response = auth_client.get(ORDERS_URL)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [o["id"] for o in data["results"]] == [str(newer.id), str(older.id)]

    def test_filters_by_status(self, auth_client, shopper, place_order):
        place_order(shopper, "t1")

        assert auth_client.get(ORDERS_URL, {"status": "PROCESSING"}).json()["count"] == 1
        assert auth_client.get(ORDERS_URL, {"status": "SHIPPED"}).json()["count"] == 0

    def test_filters_by_payment_status(self, auth_client, shopper, place_order):
        place_order(shopper, "t1")

        response = auth_client.get(ORDERS_URL, {"payment_status": "REFUNDED"})

        assert response.json()["count"] == 0

    def test_pagination(self, auth_client, shopper, place_order):
        for n in range(3):
            place_order(shopper, f"t{n}")

        data = auth_client.get(ORDERS_URL, {"page_size": 2}).json()

        assert data["count"] == 3
        assert len(data["results"]) == 2
        assert data["next"] is not None


class TestRetrieveOrder:
    def test_owner_sees_items(self, auth_client, shopper, place_order):
        order = place_order(shopper, "t1", quantity=3)

        response = auth_client.get(f"{ORDERS_URL}{order.id}/")

        assert response.status_code == 200
        data = response.json()
        assert data["total_amount"] == "30.00"
        assert data["items"][0]["unit_price"] == "10.00"
        assert data["items"][0]["subtotal"] == "30.00"

    def test_foreign_order_is_404(self, auth_client, other_shopper, place_order):
        order = place_order(other_shopper, "t1")
        assert auth_client.get(f"{ORDERS_URL}{order.id}/").status_code == 404

    @pytest.mark.parametrize("order_id", ["not-a-uuid", uuid4()])
    def test_missing_order_is_404(self, auth_client, order_id):
        assert auth_client.get(f"{ORDERS_URL}{order_id}/").status_code == 404


class TestTransitionOrder:
    def test_admin_ships_order(self, admin_client, shopper, place_order):
        order = place_order(shopper, "t1")

        response = admin_client.patch(
            f"{ORDERS_URL}{order.id}/", {"status": "SHIPPED"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["status"] == "SHIPPED"
        assert OutboxEvent.objects.filter(event_type="OrderStatusChanged").count() == 1

    def test_shopper_cannot_transition(self, auth_client, shopper, place_order):
        order = place_order(shopper, "t1")

        response = auth_client.patch(
            f"{ORDERS_URL}{order.id}/", {"status": "SHIPPED"}, format="json"
        )

        assert response.status_code == 403

    def test_invalid_transition_is_400(self, admin_client, shopper, place_order):
        order = place_order(shopper, "t1")

        response = admin_client.patch(
            f"{ORDERS_URL}{order.id}/", {"status": "DELIVERED"}, format="json"
        )

        assert response.status_code == 400

    def test_empty_patch_is_400(self, admin_client, shopper, place_order):
        order = place_order(shopper, "t1")
        response = admin_client.patch(f"{ORDERS_URL}{order.id}/", {}, format="json")
        assert response.status_code == 400

    def test_unknown_order_is_404(self, admin_client):
        response = admin_client.patch(
            f"{ORDERS_URL}{uuid4()}/", {"status": "SHIPPED"}, format="json"
        )
        assert response.status_code == 404
