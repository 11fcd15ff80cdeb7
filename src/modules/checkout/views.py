"""Checkout API view.

``POST /api/v1/checkout/`` turns the caller's cart into an order.  The
attempt token (``Idempotency-Key`` header, or ``attempt_token`` in the
body) makes retries safe: replaying a token returns the same order or
the same error.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.carts.views import build_cart_service
from modules.checkout.constants import ATTEMPT_TOKEN_MAX_LENGTH
from modules.checkout.dtos import CheckoutDTO
from modules.checkout.exceptions import (
    AttemptAbandoned,
    AttemptConflict,
    CartChanged,
    CheckoutBusy,
    EmptyCart,
    PaymentFailed,
    StorageUnavailable,
)
from modules.checkout.payments import get_payment_gateway
from modules.checkout.repositories.django_repository import (
    CheckoutAttemptDjangoRepository,
)
from modules.checkout.serializers import CheckoutSerializer
from modules.checkout.services import CheckoutService
from modules.core.exceptions import (
    Conflict,
    PaymentRequired,
    ServiceBusy,
    ServiceUnavailable,
    UnprocessableCart,
)
from modules.core.identity import identity_from_request
from modules.inventory.exceptions import OutOfStock
from modules.inventory.services import InventoryService
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderSerializer
from modules.orders.services import OrderLedgerService
from modules.products.repositories.django_repository import ProductDjangoRepository

IDEMPOTENCY_HEADER = "Idempotency-Key"


def build_checkout_service() -> CheckoutService:
    products = ProductDjangoRepository()
    return CheckoutService(
        attempt_repository=CheckoutAttemptDjangoRepository(),
        cart_service=build_cart_service(),
        inventory_service=InventoryService(product_repository=products),
        order_service=OrderLedgerService(order_repository=OrderDjangoRepository()),
        product_repository=products,
        payment_gateway=get_payment_gateway(),
    )


class CheckoutView(APIView):
    throttle_scope = "checkout"

    def post(self, request: Request) -> Response:
        """POST /api/v1/checkout/"""
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        token = (
            request.headers.get(IDEMPOTENCY_HEADER, "").strip()
            or data.get("attempt_token", "").strip()
        )
        if not token:
            raise ValidationError(
                {"attempt_token": [f"Send an {IDEMPOTENCY_HEADER} header."]}
            )
        if len(token) > ATTEMPT_TOKEN_MAX_LENGTH:
            raise ValidationError(
                {
                    "attempt_token": [
                        f"{IDEMPOTENCY_HEADER} must be at most "
                        f"{ATTEMPT_TOKEN_MAX_LENGTH} characters."
                    ]
                }
            )

        dto = CheckoutDTO(
            user_id=identity_from_request(request).user_id,
            attempt_token=token,
            shipping_address=data["shipping_address"],
            payment_success=data["payment_success"],
        )

        try:
            order = build_checkout_service().checkout(dto)
        except EmptyCart as exc:
            raise UnprocessableCart(str(exc)) from exc
        except PaymentFailed as exc:
            raise PaymentRequired(str(exc)) from exc
        except OutOfStock as exc:
            raise Conflict(str(exc), code="out_of_stock") from exc
        except (CartChanged, AttemptConflict) as exc:
            raise Conflict(str(exc)) from exc
        except AttemptAbandoned as exc:
            raise Conflict(str(exc), code="abandoned") from exc
        except CheckoutBusy as exc:
            raise ServiceBusy() from exc
        except StorageUnavailable as exc:
            raise ServiceUnavailable() from exc

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)
