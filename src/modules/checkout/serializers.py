"""Checkout DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.checkout.constants import ATTEMPT_TOKEN_MAX_LENGTH


class CheckoutSerializer(serializers.Serializer):
    """Validates the checkout request payload.

    The attempt token normally arrives in the ``Idempotency-Key`` header;
    ``attempt_token`` in the body is accepted as a fallback.
    """

    shipping_address = serializers.CharField(max_length=1000)
    payment_success = serializers.BooleanField()
    attempt_token = serializers.CharField(
        max_length=ATTEMPT_TOKEN_MAX_LENGTH, required=False, allow_blank=False
    )
