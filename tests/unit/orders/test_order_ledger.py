"""Unit tests for OrderLedgerService and the Order/OrderItem models."""

from __future__ import annotations

import re
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.core.models import OutboxEvent
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.dtos import AppendOrderDTO, OrderLineDTO, TransitionOrderDTO
from modules.orders.exceptions import (
    ImmutableOrder,
    InvalidOrderTransition,
    OrderNotFound,
)
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderLedgerService

pytestmark = pytest.mark.unit

ORDER_NUMBER = re.compile(r"^ORD-\d{8}-[0-9A-F]{6}$")


@pytest.fixture()
def service():
    return OrderLedgerService(order_repository=OrderDjangoRepository())


@pytest.fixture()
def placed_order(service, make_product):
    a = make_product("LEDGER-A", price="10.00")
    b = make_product("LEDGER-B", price="2.50")
    return service.append(
        AppendOrderDTO(
            user_id="user-1",
            shipping_address="1 Main St",
            idempotency_key="attempt-1",
            items=[
                OrderLineDTO(product_id=a.id, quantity=2, unit_price=Decimal("10.00")),
                OrderLineDTO(product_id=b.id, quantity=4, unit_price=Decimal("2.50")),
            ],
        )
    )


class TestAppend:
    def test_assigns_number_total_and_initial_states(self, placed_order):
        assert ORDER_NUMBER.match(placed_order.order_number)
        assert placed_order.total_amount == Decimal("30.00")
        assert placed_order.status == OrderStatus.PROCESSING
        assert placed_order.payment_status == PaymentStatus.PAID
        assert placed_order.items.count() == 2

    def test_item_subtotals_are_computed(self, placed_order):
        subtotals = sorted(item.subtotal for item in placed_order.items.all())
        assert subtotals == [Decimal("10.00"), Decimal("20.00")]

    def test_writes_order_placed_event(self, placed_order):
        event = OutboxEvent.objects.get(event_type="OrderPlaced")
        assert event.aggregate_id == str(placed_order.id)
        assert event.topic == "orders"
        assert event.payload["total_amount"] == "30.00"
        assert len(event.payload["items"]) == 2

    def test_order_needs_items(self):
        with pytest.raises(ValidationError):
            AppendOrderDTO(user_id="u", shipping_address="x", items=[])


class TestImmutability:
    def test_price_snapshot_survives_price_change(self, placed_order, make_product):
        item = placed_order.items.get(product__sku="LEDGER-A")
        product = item.product
        product.price = Decimal("99.00")
        product.save()

        item.refresh_from_db()
        assert item.unit_price == Decimal("10.00")

    def test_order_fields_cannot_be_rewritten(self, placed_order):
        placed_order.total_amount = Decimal("1.00")
        with pytest.raises(ImmutableOrder):
            placed_order.save()

    def test_order_items_are_write_once(self, placed_order):
        item = placed_order.items.first()
        item.quantity = 99
        with pytest.raises(ImmutableOrder):
            item.save()

    def test_orders_cannot_be_deleted(self, placed_order):
        with pytest.raises(ImmutableOrder):
            placed_order.delete()


class TestQueries:
    def test_get_order_for_owner(self, service, placed_order):
        assert service.get_order(str(placed_order.id), "user-1") == placed_order

    def test_foreign_order_is_not_found(self, service, placed_order):
        with pytest.raises(OrderNotFound):
            service.get_order(str(placed_order.id), "user-2")

    @pytest.mark.parametrize("order_id", ["garbage", str(uuid4())])
    def test_missing_or_malformed_id_is_not_found(self, service, order_id):
        with pytest.raises(OrderNotFound):
            service.get_order(order_id, "user-1")

    def test_list_is_newest_first(self, service, placed_order, make_product):
        product = make_product("LEDGER-C")
        newer = service.append(
            AppendOrderDTO(
                user_id="user-1",
                shipping_address="1 Main St",
                idempotency_key="attempt-2",
                items=[
                    OrderLineDTO(
                        product_id=product.id, quantity=1, unit_price=Decimal("1.00")
                    )
                ],
            )
        )

        assert list(service.list_orders("user-1")) == [newer, placed_order]
        assert list(service.list_orders("user-2")) == []

    def test_find_by_attempt(self, service, placed_order):
        assert service.find_by_attempt("attempt-1") == placed_order
        assert service.find_by_attempt("unknown") is None


class TestTransition:
    def test_ship_then_deliver(self, service, placed_order):
        service.transition(
            TransitionOrderDTO(order_id=placed_order.id, status=OrderStatus.SHIPPED)
        )
        order = service.transition(
            TransitionOrderDTO(order_id=placed_order.id, status=OrderStatus.DELIVERED)
        )

        assert order.status == OrderStatus.DELIVERED
        assert OutboxEvent.objects.filter(event_type="OrderStatusChanged").count() == 2

    def test_refund_payment(self, service, placed_order):
        order = service.transition(
            TransitionOrderDTO(
                order_id=placed_order.id, payment_status=PaymentStatus.REFUNDED
            )
        )
        assert order.payment_status == PaymentStatus.REFUNDED

    def test_cannot_skip_shipping(self, service, placed_order):
        with pytest.raises(InvalidOrderTransition):
            service.transition(
                TransitionOrderDTO(
                    order_id=placed_order.id, status=OrderStatus.DELIVERED
                )
            )

    def test_cannot_cancel_shipped_order(self, service, placed_order):
        service.transition(
            TransitionOrderDTO(order_id=placed_order.id, status=OrderStatus.SHIPPED)
        )
        with pytest.raises(InvalidOrderTransition):
            service.transition(
                TransitionOrderDTO(
                    order_id=placed_order.id, status=OrderStatus.CANCELLED
                )
            )

    def test_paid_cannot_fail(self, service, placed_order):
        with pytest.raises(InvalidOrderTransition):
            service.transition(
                TransitionOrderDTO(
                    order_id=placed_order.id, payment_status=PaymentStatus.FAILED
                )
            )

    def test_unknown_order(self, service):
        with pytest.raises(OrderNotFound):
            service.transition(
                TransitionOrderDTO(order_id=uuid4(), status=OrderStatus.SHIPPED)
            )

    def test_requires_a_change(self):
        with pytest.raises(ValidationError):
            TransitionOrderDTO(order_id=uuid4())

    def test_same_status_is_a_noop(self, service, placed_order):
        service.transition(
            TransitionOrderDTO(order_id=placed_order.id, status=OrderStatus.PROCESSING)
        )
        assert not OutboxEvent.objects.filter(event_type="OrderStatusChanged").exists()
