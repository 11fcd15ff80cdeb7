"""Checkout attempt repositories package."""

from modules.checkout.repositories.django_repository import (
    CheckoutAttemptDjangoRepository,
)
from modules.checkout.repositories.interfaces import ICheckoutAttemptRepository

__all__ = ["ICheckoutAttemptRepository", "CheckoutAttemptDjangoRepository"]
