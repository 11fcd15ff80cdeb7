"""Inventory domain exceptions.

Raised by ``InventoryService``; the checkout orchestrator turns
``InsufficientStock`` into a compensated ``OutOfStock`` failure.
"""

from __future__ import annotations


class InsufficientStock(Exception):
    """Stock was re-checked under the row lock and is below the request."""

    def __init__(self, product_id: object, requested: int, available: int) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Product {product_id}: requested {requested}, available {available}."
        )


class InvalidQuantity(ValueError):
    """A stock mutation was asked for less than one unit."""


class OutOfStock(Exception):
    """A product cannot be bought: sold out, or short at checkout time."""

    def __init__(self, product_id: object, detail: str | None = None) -> None:
        self.product_id = product_id
        super().__init__(detail or f"Product {product_id} is out of stock.")
