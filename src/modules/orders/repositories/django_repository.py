"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
The Order aggregate (Order + OrderItems) is persisted atomically; domain
events collected on the aggregate are written to the transactional
outbox in the caller's transaction.
"""

from __future__ import annotations

from typing import Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet

from modules.core.models import OutboxEvent
from modules.orders.dtos import AppendOrderDTO
from modules.orders.models import Order, OrderItem
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, dto: AppendOrderDTO) -> Order:
        order = Order(
            user_id=dto.user_id,
            shipping_address=dto.shipping_address,
            idempotency_key=dto.idempotency_key,
            status=dto.status,
            payment_status=dto.payment_status,
            total_amount=dto.total_amount,
        )
        order.save()

        for line in dto.items:
            OrderItem(
                order=order,
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
            ).save()

        logger.info(
            "order.created",
            order_id=str(order.id),
            item_count=len(dto.items),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with its items (and their products) prefetched.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.prefetch_related("items__product").filter(id=id).first()
            )
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return (
                Order.objects.select_for_update()
                .prefetch_related("items__product")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        return (
            Order.objects.prefetch_related("items__product")
            .filter(idempotency_key=key)
            .first()
        )

    def for_user(self, user_id: str) -> QuerySet:
        return (
            Order.objects.filter(user_id=user_id)
            .prefetch_related("items__product")
            .order_by("-created_at", "-id")
        )

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist a status change of an existing order plus its events."""
        entity.save(update_fields=["status", "payment_status"])
        event_count = self.record_events(entity)
        logger.info("order.saved", order_id=str(entity.id), event_count=event_count)
        return entity

    def record_events(self, entity: Order) -> int:
        events = entity.pull_events()
        for event in events:
            OutboxEvent.record(event, topic=OUTBOX_TOPIC)
        return len(events)
