"""Inventory Store (Use Cases).

Owns the per-product stock counters.  Every mutation locks the product
row (``SELECT FOR UPDATE``) and re-verifies stock under that lock, so two
concurrent decrements on the same product can never both succeed when
their combined quantity exceeds the stock.

Both mutations are ``transaction.atomic``: called inside the checkout's
unit of work they become savepoints and the locks are held until the
outer transaction commits.  Callers touching several products must call
them in ascending product-id order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from django.db import transaction

from modules.inventory.exceptions import InsufficientStock, InvalidQuantity
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class InventoryService:
    """Application service for stock reads and mutations."""

    def __init__(self, product_repository: IProductRepository) -> None:
        self._product_repo = product_repository

    def get_available(self, product_id: str) -> int:
        """Current stock of a product, for advisory checks only.

        Raises:
            ProductNotFound: unknown or soft-deleted product.
        """
        product = self._product_repo.get_by_id(str(product_id))
        if not product:
            raise ProductNotFound(product_id)
        return product.stock_quantity

    @transaction.atomic
    def decrement(self, product_id: str, quantity: int) -> Product:
        """Subtract *quantity* units if and only if enough stock remains.

        Returns the locked, updated product so the caller can snapshot its
        price under the same lock.

        Raises:
            InvalidQuantity: ``quantity < 1``.
            ProductNotFound: unknown or soft-deleted product.
            InsufficientStock: stock below *quantity* at decrement time.
        """
        _require_positive(quantity)
        product = self._product_repo.get_for_update(str(product_id))
        if not product:
            raise ProductNotFound(product_id)

        log = logger.bind(product_id=str(product_id), quantity=quantity)
        if product.stock_quantity < quantity:
            log.info("inventory.insufficient", available=product.stock_quantity)
            raise InsufficientStock(product.id, quantity, product.stock_quantity)

        product.stock_quantity -= quantity
        product.save(update_fields=["stock_quantity", "sold_out"])
        log.info(
            "inventory.decremented",
            remaining=product.stock_quantity,
            sold_out=product.sold_out,
        )
        return product

    @transaction.atomic
    def increment(self, product_id: str, quantity: int) -> Product:
        """Give back *quantity* units taken by an earlier ``decrement``.

        Compensation primitive for the checkout rollback path; clears
        ``sold_out`` once stock is positive again.

        Raises:
            InvalidQuantity: ``quantity < 1``.
            ProductNotFound: unknown or soft-deleted product.
        """
        _require_positive(quantity)
        product = self._product_repo.get_for_update(str(product_id))
        if not product:
            raise ProductNotFound(product_id)

        product.stock_quantity += quantity
        product.save(update_fields=["stock_quantity", "sold_out"])
        logger.info(
            "inventory.incremented",
            product_id=str(product_id),
            quantity=quantity,
            restored_stock=product.stock_quantity,
        )
        return product


def _require_positive(quantity: int) -> None:
    if quantity < 1:
        raise InvalidQuantity(f"Quantity must be at least 1, got {quantity}.")
