"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from modules.core.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class OrderPlaced(DomainEvent):
    """Raised when checkout appends an order to the ledger."""

    order_number: str
    user_id: str
    total_amount: str
    items: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class OrderStatusChanged(DomainEvent):
    """Raised when fulfillment moves an order's status or payment status."""

    old_status: str
    new_status: str
    old_payment_status: Optional[str] = None
    new_payment_status: Optional[str] = None
