"""Checkout attempt state machine.

``IDLE`` is implicit: it is the state of a token that has no attempt row
yet.  ``CART_CLEARED`` and ``REJECTED`` are terminal ("settled"); a
settled attempt only ever replays its recorded outcome.
"""

from django.db import models


class CheckoutState(models.TextChoices):
    VALIDATING = "VALIDATING", "Validating"
    RESERVING = "RESERVING", "Reserving"
    ORDER_CREATED = "ORDER_CREATED", "Order created"
    CART_CLEARED = "CART_CLEARED", "Cart cleared"
    COMPENSATING = "COMPENSATING", "Compensating"
    REJECTED = "REJECTED", "Rejected"


VALID_TRANSITIONS: dict[str, set[str]] = {
    CheckoutState.VALIDATING: {CheckoutState.RESERVING, CheckoutState.REJECTED},
    CheckoutState.RESERVING: {
        CheckoutState.ORDER_CREATED,
        CheckoutState.COMPENSATING,
        # resume after an interrupted reservation
        CheckoutState.VALIDATING,
    },
    CheckoutState.ORDER_CREATED: {CheckoutState.CART_CLEARED},
    CheckoutState.COMPENSATING: {CheckoutState.REJECTED},
    CheckoutState.CART_CLEARED: set(),
    CheckoutState.REJECTED: set(),
}

SETTLED_STATES: set[str] = {CheckoutState.CART_CLEARED, CheckoutState.REJECTED}

IN_FLIGHT_STATES: set[str] = {CheckoutState.VALIDATING, CheckoutState.RESERVING}


class RejectionCode(models.TextChoices):
    EMPTY_CART = "empty_cart", "Empty cart"
    PAYMENT_FAILED = "payment_failed", "Payment failed"
    OUT_OF_STOCK = "out_of_stock", "Out of stock"
    ABANDONED = "abandoned", "Abandoned"


# Width of ``checkout_attempts.token`` and ``orders.idempotency_key``.
ATTEMPT_TOKEN_MAX_LENGTH = 255
