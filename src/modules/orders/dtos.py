"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the callers (checkout, API views)
and the Order Ledger.  DTOs are immutable (``frozen=True``).

- ``OrderLineDTO``: one line with its price snapshot.
- ``AppendOrderDTO``: a fully priced order ready to be appended.
- ``TransitionOrderDTO``: fulfillment-side status change.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from modules.orders.constants import OrderStatus, PaymentStatus


class OrderLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    unit_price: Decimal

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @field_validator("unit_price")
    @classmethod
    def unit_price_must_be_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("Unit price must be greater than zero.")
        return v

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class AppendOrderDTO(BaseModel):
    """A priced order; ``idempotency_key`` is the checkout attempt token."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    shipping_address: str
    idempotency_key: Optional[str] = None
    items: List[OrderLineDTO]
    status: OrderStatus = OrderStatus.PROCESSING
    payment_status: PaymentStatus = PaymentStatus.PAID

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v: List[OrderLineDTO]) -> List[OrderLineDTO]:
        if not v:
            raise ValueError("An order needs at least one item.")
        return v

    @property
    def total_amount(self) -> Decimal:
        return sum((line.subtotal for line in self.items), Decimal("0.00"))


class TransitionOrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None

    @model_validator(mode="after")
    def requires_a_change(self) -> TransitionOrderDTO:
        if self.status is None and self.payment_status is None:
            raise ValueError("Provide status and/or payment_status.")
        return self
