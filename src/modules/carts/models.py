"""Cart and CartItem models.

- One cart per user (``user_id`` unique), created lazily.
- ``version`` increases on every mutation; checkout compares it to detect
  a cart edited between its snapshot and its commit.
- A product appears at most once per cart (replace-on-duplicate).
- Lines reference products by FK and resolve name/price at read time.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class Cart(BaseModel):
    user_id = models.CharField(max_length=255, unique=True)
    version = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "carts"

    @property
    def estimated_total(self) -> Decimal:
        """Advisory total at current prices; ignores deleted products.

        Assumes ``items__product`` is prefetched.
        """
        total = Decimal("0.00")
        for item in self.items.all():
            if item.is_available:
                total += item.line_total
        return total

    def __str__(self) -> str:
        return f"Cart({self.user_id}, v{self.version})"


class CartItem(BaseModel):
    cart = models.ForeignKey(
        "carts.Cart",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.CASCADE,
        related_name="cart_items",
    )
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    class Meta:
        db_table = "cart_items"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["cart", "product"],
                name="cart_items_one_line_per_product",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="cart_items_quantity_positive",
            ),
        ]

    @property
    def is_available(self) -> bool:
        return not self.product.is_deleted

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity

    def __str__(self) -> str:
        return f"{self.product_id} x{self.quantity}"
