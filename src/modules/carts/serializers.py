"""Cart DRF serializers for API input/output."""

from __future__ import annotations

from rest_framework import serializers

from modules.carts.dtos import MAX_QUANTITY
from modules.carts.models import Cart, CartItem

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CartItemQuantitySerializer(serializers.Serializer):
    """Body of ``PUT /cart/items/{product_id}/``."""

    quantity = serializers.IntegerField(min_value=1, max_value=MAX_QUANTITY)


class AddCartItemSerializer(CartItemQuantitySerializer):
    """Body of ``POST /cart/items/``."""

    product_id = serializers.UUIDField()


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class CartItemSerializer(serializers.ModelSerializer):
    """Cart line resolved against the current product row."""

    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True)
    unit_price = serializers.DecimalField(
        source="product.price", max_digits=10, decimal_places=2, read_only=True
    )
    sold_out = serializers.BooleanField(source="product.sold_out", read_only=True)
    is_available = serializers.BooleanField(read_only=True)
    line_total = serializers.DecimalField(
        max_digits=12, decimal_places=2, read_only=True
    )

    class Meta:
        model = CartItem
        fields = [
            "product_id",
            "product_name",
            "product_sku",
            "quantity",
            "unit_price",
            "line_total",
            "sold_out",
            "is_available",
        ]
        read_only_fields = fields


class CartSerializer(serializers.ModelSerializer):
    items = CartItemSerializer(many=True, read_only=True)
    estimated_total = serializers.DecimalField(
        max_digits=12, decimal_places=2, read_only=True
    )

    class Meta:
        model = Cart
        fields = [
            "id",
            "user_id",
            "version",
            "items",
            "estimated_total",
            "updated_at",
        ]
        read_only_fields = fields
