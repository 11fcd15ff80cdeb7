"""Product repository interface.

Only living (not soft-deleted) products are visible through this
contract: for the cart and the checkout a deleted product does not exist.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Iterable, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU."""

    @abstractmethod
    def existing_ids(self, ids: Iterable[str]) -> set[str]:
        """Return the subset of *ids* that belong to living products."""
