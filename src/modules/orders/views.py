"""Order API views.

Exposes the ``OrderLedgerService`` via HTTP using a DRF ViewSet.
Domain exceptions are caught and translated into ``APIException``
subclasses; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import BasePermission, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.identity import HasAdminRole, identity_from_request
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import TransitionOrderDTO
from modules.orders.exceptions import InvalidOrderTransition, OrderNotFound
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    OrderListSerializer,
    OrderSerializer,
    TransitionOrderSerializer,
)
from modules.orders.services import OrderLedgerService


class OrderViewSet(GenericViewSet):
    """Read access to the caller's orders plus the admin status change.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    filterset_class = OrderFilter
    filter_backends = [DjangoFilterBackend]
    pagination_class = StandardResultsSetPagination

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderLedgerService(order_repository=OrderDjangoRepository())

    def get_permissions(self) -> list[BasePermission]:
        if self.action == "partial_update":
            return [HasAdminRole()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scope per action."""
        if self.action in {"list", "retrieve"}:
            self.throttle_scope = "order_listing"
        else:
            self.throttle_scope = None
        return super().get_throttles()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.list_orders(identity_from_request(self.request).user_id)

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Most recent first; filtering (status, payment status, date range)
        is handled by ``OrderFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk, identity_from_request(request).user_id)
        except OrderNotFound as exc:
            raise NotFound("Order not found.") from exc
        return Response(OrderSerializer(order).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/ (admin role only)"""
        serializer = TransitionOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            dto = TransitionOrderDTO(
                order_id=pk,
                status=data.get("status"),
                payment_status=data.get("payment_status"),
            )
        except ValueError as exc:
            raise NotFound("Order not found.") from exc

        try:
            order = self._service.transition(dto)
        except OrderNotFound as exc:
            raise NotFound("Order not found.") from exc
        except InvalidOrderTransition as exc:
            raise ValidationError({"status": [str(exc)]}) from exc

        return Response(OrderSerializer(order).data)
