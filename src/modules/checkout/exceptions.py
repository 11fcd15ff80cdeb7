"""Checkout domain exceptions.

Raised by ``CheckoutService``.  ``OutOfStock`` is shared with the cart
and lives in ``modules.inventory.exceptions``.
"""

from __future__ import annotations

from typing import Optional


class EmptyCart(Exception):
    """Nothing purchasable in the cart."""

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail or "Cart is empty.")


class PaymentFailed(Exception):
    """The payment gateway declined the attempt."""

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail or "Payment failed.")


class CartChanged(Exception):
    """The cart was edited between the snapshot and the reservation."""

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail or "Cart changed during checkout, please retry.")


class AttemptConflict(Exception):
    """The attempt token already belongs to another user."""

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail or "Attempt token is already in use.")


class AttemptAbandoned(Exception):
    """The attempt stalled and was rolled back by crash recovery."""

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail or "Checkout attempt was abandoned.")


class CheckoutBusy(Exception):
    """Lock contention exceeded the configured wait; safe to retry."""


class StorageUnavailable(Exception):
    """The database failed for a reason other than lock contention."""


class InvalidAttemptTransition(Exception):
    """A checkout attempt was moved along an edge its state machine lacks."""
