"""Order repository interface.

Extends ``IRepository[Order]`` with the Order Ledger needs: atomic
creation with items, idempotency-key look-up, the per-user listing and
flushing collected domain events to the outbox.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from modules.orders.dtos import AppendOrderDTO
    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root (Order + OrderItems)."""

    @abstractmethod
    def create(self, dto: AppendOrderDTO) -> Order:
        """Insert the order, its items and its total atomically."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve the order placed by a checkout attempt token."""

    @abstractmethod
    def for_user(self, user_id: str) -> QuerySet:
        """Orders of *user_id*, most recent first, items prefetched."""

    @abstractmethod
    def record_events(self, entity: Order) -> int:
        """Write the aggregate's pending domain events to the outbox."""
