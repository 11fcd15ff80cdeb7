"""Order domain constants.

Two independent state machines live on an order: the fulfillment
``status`` and the ``payment_status``.  Orders placed by checkout start
at ``PROCESSING`` / ``PAID``.
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PROCESSING = "PROCESSING", "Processing"
    SHIPPED = "SHIPPED", "Shipped"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PAID = "PAID", "Paid"
    REFUNDED = "REFUNDED", "Refunded"
    FAILED = "FAILED", "Failed"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

VALID_PAYMENT_TRANSITIONS: dict[str, set[str]] = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),
    PaymentStatus.FAILED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Fields an existing order may still change; everything else is write-once.
MUTABLE_ORDER_FIELDS = frozenset({"status", "payment_status", "updated_at"})

ORDER_NUMBER_MAX_RETRIES = 5
