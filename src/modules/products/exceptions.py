"""Product domain exceptions."""

from __future__ import annotations


class ProductNotFound(Exception):
    """The product does not exist or has been soft-deleted."""

    def __init__(self, product_id: object) -> None:
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found.")
