"""Django ORM implementation of the Product repository.

Look-ups return ``None`` instead of raising for missing, soft-deleted or
malformed IDs; the Service Layer decides how to report a missing product.
"""

from __future__ import annotations

from typing import Iterable, Optional

import structlog
from django.core.exceptions import ValidationError

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Product]:
        """Lock the product row for a stock mutation.

        Returns ``None`` for missing, soft-deleted or invalid IDs.
        """
        try:
            return Product.objects.select_for_update().alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity

    def get_by_sku(self, sku: str) -> Optional[Product]:
        return Product.objects.alive().filter(sku=sku.strip().upper()).first()

    def existing_ids(self, ids: Iterable[str]) -> set[str]:
        wanted = [str(pk) for pk in ids]
        if not wanted:
            return set()
        found = Product.objects.alive().filter(id__in=wanted).values_list(
            "id", flat=True
        )
        return {str(pk) for pk in found}
