"""Cart Manager (Use Cases).

Per-user cart mutations.  Every write locks the user's cart row first,
so concurrent edits from several tabs serialise and none is lost, while
carts of different users never contend with each other.

Business rules enforced:
- Quantity is at least 1 (validated by ``UpsertCartItemDTO``).
- The product must exist and not be sold out; stock sufficiency is only
  checked at checkout.
- Adding a product already in the cart replaces its quantity.
- Removing an absent product is a no-op.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from django.db import transaction

from modules.carts.dtos import CartSnapshotDTO
from modules.inventory.exceptions import OutOfStock
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.carts.dtos import UpsertCartItemDTO
    from modules.carts.models import Cart
    from modules.carts.repositories.interfaces import ICartRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class CartService:
    """Application service for Cart use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        cart_repository: ICartRepository,
        product_repository: IProductRepository,
    ) -> None:
        self._cart_repo = cart_repository
        self._product_repo = product_repository

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_cart(self, user_id: str) -> Cart:
        """Return the user's cart, creating it empty on first access."""
        cart = self._cart_repo.get_by_user(user_id)
        if cart is None:
            self._cart_repo.get_or_create(user_id)
            cart = self._cart_repo.get_by_user(user_id)
        return cart

    def snapshot(self, user_id: str) -> CartSnapshotDTO:
        """Frozen lines + version, the input of a checkout."""
        return CartSnapshotDTO.from_entity(self.get_cart(user_id))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def upsert_item(self, dto: UpsertCartItemDTO) -> Cart:
        """Add a product or replace its quantity.

        Raises:
            ProductNotFound: unknown or soft-deleted product.
            OutOfStock: the product is currently sold out.
        """
        log = logger.bind(user_id=dto.user_id, product_id=str(dto.product_id))

        product = self._product_repo.get_by_id(str(dto.product_id))
        if not product:
            raise ProductNotFound(dto.product_id)
        if product.sold_out:
            log.info("cart.item_rejected_sold_out")
            raise OutOfStock(dto.product_id)

        cart = self.lock(dto.user_id)
        self._cart_repo.set_item(cart, product.id, dto.quantity)
        self._cart_repo.bump_version(cart)

        log.info("cart.item_upserted", quantity=dto.quantity, version=cart.version)
        return self._cart_repo.get_by_user(dto.user_id)

    @transaction.atomic
    def remove_item(self, user_id: str, product_id: UUID) -> Cart:
        """Remove a product line; absent lines leave the cart unchanged."""
        cart = self.lock(user_id)
        if self._cart_repo.remove_item(cart, product_id):
            self._cart_repo.bump_version(cart)
            logger.info(
                "cart.item_removed",
                user_id=user_id,
                product_id=str(product_id),
                version=cart.version,
            )
        return self._cart_repo.get_by_user(user_id)

    @transaction.atomic
    def clear(self, user_id: str) -> Cart:
        """Empty the cart.  Only the checkout calls this, inside its unit of work."""
        cart = self.lock(user_id)
        removed = self._cart_repo.clear(cart)
        self._cart_repo.bump_version(cart)
        logger.info("cart.cleared", user_id=user_id, removed_lines=removed)
        return cart

    def lock(self, user_id: str) -> Cart:
        """Lock the user's cart row for the caller's transaction."""
        cart = self._cart_repo.get_for_update(user_id)
        if cart is None:
            self._cart_repo.get_or_create(user_id)
            cart = self._cart_repo.get_for_update(user_id)
        return cart
