"""Cart URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.carts.views import CartItemCollectionView, CartItemView, CartView

urlpatterns = [
    path("cart/", CartView.as_view(), name="cart"),
    path("cart/items/", CartItemCollectionView.as_view(), name="cart-items"),
    path(
        "cart/items/<uuid:product_id>/",
        CartItemView.as_view(),
        name="cart-item",
    ),
]
