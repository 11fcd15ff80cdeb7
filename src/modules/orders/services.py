"""Order Ledger service (Use Cases).

Append-only store of placed orders.  Checkout appends; users read their
own orders; fulfillment (admin role) moves the status machines forward.

Business rules enforced:
- An order is visible only to the user who placed it; a missing,
  malformed or foreign order id all look the same (``OrderNotFound``).
- Status and payment-status changes follow their state machines.
- Every append and transition writes an outbox event in the same
  transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from django.db import transaction

from modules.orders.events import OrderPlaced, OrderStatusChanged
from modules.orders.exceptions import InvalidOrderTransition, OrderNotFound

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.dtos import AppendOrderDTO, TransitionOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


class OrderLedgerService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def append(self, dto: AppendOrderDTO) -> Order:
        """Persist a priced order and its ``OrderPlaced`` event."""
        order = self._order_repo.create(dto)
        order.record_event(
            OrderPlaced(
                aggregate_id=order.id,
                order_number=order.order_number,
                user_id=order.user_id,
                total_amount=str(order.total_amount),
                items=[
                    {
                        "product_id": str(line.product_id),
                        "quantity": line.quantity,
                        "unit_price": str(line.unit_price),
                    }
                    for line in dto.items
                ],
            )
        )
        self._order_repo.record_events(order)

        logger.info(
            "order.appended",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=order.user_id,
            total_amount=str(order.total_amount),
        )
        return order

    @transaction.atomic
    def transition(self, dto: TransitionOrderDTO) -> Order:
        """Move status and/or payment status forward.

        Raises:
            OrderNotFound: no order with that id.
            InvalidOrderTransition: a move not allowed by its state machine.
        """
        order = self._order_repo.get_for_update(str(dto.order_id))
        if not order:
            raise OrderNotFound(f"Order {dto.order_id} not found.")

        old_status = order.status
        old_payment_status = order.payment_status

        if dto.status is not None and dto.status != order.status:
            if not order.can_transition_to(dto.status):
                raise InvalidOrderTransition(
                    f"Cannot move order from {order.status} to {dto.status}."
                )
            order.status = dto.status

        if dto.payment_status is not None and dto.payment_status != order.payment_status:
            if not order.can_transition_payment_to(dto.payment_status):
                raise InvalidOrderTransition(
                    f"Cannot move payment from {order.payment_status} "
                    f"to {dto.payment_status}."
                )
            order.payment_status = dto.payment_status

        if (old_status, old_payment_status) == (order.status, order.payment_status):
            return order

        order.record_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=order.status,
                old_payment_status=old_payment_status,
                new_payment_status=order.payment_status,
            )
        )
        self._order_repo.save(order)

        logger.info(
            "order.transitioned",
            order_id=str(order.id),
            old_status=old_status,
            new_status=order.status,
            old_payment_status=old_payment_status,
            new_payment_status=order.payment_status,
        )
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, user_id: str) -> Order:
        """Raises ``OrderNotFound`` if missing, malformed or not *user_id*'s."""
        order = self._order_repo.get_by_id(str(order_id))
        if not order or order.user_id != user_id:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, user_id: str) -> QuerySet:
        """The user's orders, most recent first."""
        return self._order_repo.for_user(user_id)

    def find_by_attempt(self, token: str) -> Order | None:
        """The order placed by checkout attempt *token*, if any."""
        return self._order_repo.get_by_idempotency_key(token)
