"""Cart DTOs for the Service Layer.

Framework-agnostic, immutable (``frozen=True``) pydantic v2 models.

- ``UpsertCartItemDTO``: input for adding/replacing a cart line.
- ``CartLineDTO`` / ``CartSnapshotDTO``: the frozen view of a cart that
  checkout works from.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

if TYPE_CHECKING:
    from modules.carts.models import Cart

# Upper bound of the ``cart_items.quantity`` integer column.
MAX_QUANTITY = 2_147_483_647


class UpsertCartItemDTO(BaseModel):
    """Validates the quantity range; the product is resolved by the service."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        if v > MAX_QUANTITY:
            raise ValueError(f"Quantity must be at most {MAX_QUANTITY}.")
        return v

    @field_validator("user_id")
    @classmethod
    def user_id_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("User id must not be empty.")
        return v


class CartLineDTO(BaseModel):
    """A line as seen at snapshot time; price and availability are advisory."""

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    unit_price: Decimal
    available: bool = True


class CartSnapshotDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    version: int
    lines: List[CartLineDTO]

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def quote(self) -> Decimal:
        """Advisory amount of the available lines at current prices."""
        return sum(
            (line.unit_price * line.quantity for line in self.lines if line.available),
            Decimal("0.00"),
        )

    @classmethod
    def from_entity(cls, cart: Cart) -> CartSnapshotDTO:
        return cls(
            user_id=cart.user_id,
            version=cart.version,
            lines=[
                CartLineDTO(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=item.product.price,
                    available=item.is_available,
                )
                for item in cart.items.all()
            ],
        )
