"""Cart repository interface.

Carts are looked up by their owner's ``user_id``; ``get_for_update``
locks the cart row, which serialises every mutation of one user's cart
(multiple tabs or devices) while leaving other users' carts untouched.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.carts.models import Cart


class ICartRepository(IRepository["Cart"]):
    """Repository contract for the Cart aggregate (Cart + CartItems)."""

    @abstractmethod
    def get_by_user(self, user_id: str) -> Optional[Cart]:
        """Retrieve a user's cart with lines and products prefetched."""

    @abstractmethod
    def get_or_create(self, user_id: str) -> Cart:
        """Return the user's cart, creating an empty one on first use."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Cart]:
        """Lock the cart row of user *id* (a user id, not a cart pk)."""

    @abstractmethod
    def set_item(self, cart: Cart, product_id: UUID, quantity: int) -> None:
        """Insert the line or replace its quantity."""

    @abstractmethod
    def remove_item(self, cart: Cart, product_id: UUID) -> bool:
        """Delete the line; ``False`` when it was not in the cart."""

    @abstractmethod
    def clear(self, cart: Cart) -> int:
        """Delete every line, returning how many were removed."""

    @abstractmethod
    def bump_version(self, cart: Cart) -> Cart:
        """Record a mutation by incrementing ``cart.version``."""
