"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The order does not exist, or belongs to another user."""


class InvalidOrderTransition(Exception):
    """A status or payment-status change not allowed by its state machine."""


class ImmutableOrder(Exception):
    """Write to a field of an already placed order (or to one of its items)."""
