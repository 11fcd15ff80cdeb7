"""API-level exceptions shared by every module's views.

Domain exceptions stay framework-free inside each module; views translate
them into these ``APIException`` subclasses so the standardized error
handler renders a uniform ``{"type", "errors": [{"code", "detail"}]}`` body.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.exceptions import APIException


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state."
    default_code = "conflict"


class PaymentRequired(APIException):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_detail = "Payment failed."
    default_code = "payment_failed"


class UnprocessableCart(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Cart is empty."
    default_code = "empty_cart"


class ServiceBusy(APIException):
    """Lock contention exceeded the configured bound; safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "The store is busy, please retry."
    default_code = "busy"


class ServiceUnavailable(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Storage is unavailable, please retry later."
    default_code = "internal"
