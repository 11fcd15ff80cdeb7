"""Cart API views.

Every endpoint acts on the cart of the authenticated user; a user id is
never taken from the request body.  Domain exceptions are translated into
``APIException`` subclasses rendered by the standardized error handler.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import ValidationError as DTOValidationError
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.carts.dtos import UpsertCartItemDTO
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.serializers import (
    AddCartItemSerializer,
    CartItemQuantitySerializer,
    CartSerializer,
)
from modules.carts.services import CartService
from modules.core.exceptions import Conflict
from modules.core.identity import identity_from_request
from modules.inventory.exceptions import OutOfStock
from modules.products.exceptions import ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository


def build_cart_service() -> CartService:
    return CartService(
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


class _CartAPIView(APIView):
    throttle_scope = "cart"

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_cart_service()

    def _upsert(self, request: Request, product_id: UUID, quantity: int) -> Response:
        user_id = identity_from_request(request).user_id
        try:
            dto = UpsertCartItemDTO(
                user_id=user_id, product_id=product_id, quantity=quantity
            )
            cart = self._service.upsert_item(dto)
        except DTOValidationError as exc:
            raise ValidationError(
                {"quantity": [err["msg"] for err in exc.errors()]}
            ) from exc
        except ProductNotFound as exc:
            raise NotFound(str(exc)) from exc
        except OutOfStock as exc:
            raise Conflict(str(exc), code="out_of_stock") from exc
        return Response(CartSerializer(cart).data)


class CartView(_CartAPIView):
    def get(self, request: Request) -> Response:
        """GET /api/v1/cart/"""
        cart = self._service.get_cart(identity_from_request(request).user_id)
        return Response(CartSerializer(cart).data)


class CartItemCollectionView(_CartAPIView):
    def post(self, request: Request) -> Response:
        """POST /api/v1/cart/items/ -- add a product or replace its quantity."""
        serializer = AddCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        return self._upsert(request, data["product_id"], data["quantity"])


class CartItemView(_CartAPIView):
    def put(self, request: Request, product_id: UUID) -> Response:
        """PUT /api/v1/cart/items/{product_id}/"""
        serializer = CartItemQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._upsert(request, product_id, serializer.validated_data["quantity"])

    def delete(self, request: Request, product_id: UUID) -> Response:
        """DELETE /api/v1/cart/items/{product_id}/ -- idempotent."""
        cart = self._service.remove_item(
            identity_from_request(request).user_id, product_id
        )
        return Response(CartSerializer(cart).data)
