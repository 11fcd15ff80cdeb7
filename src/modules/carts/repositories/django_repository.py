"""Django ORM implementation of the Cart repository."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.carts.models import Cart, CartItem
from modules.carts.repositories.interfaces import ICartRepository

logger = structlog.get_logger(__name__)


class CartDjangoRepository(ICartRepository):
    """Concrete Cart repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Cart]:
        try:
            return (
                Cart.objects.prefetch_related("items__product")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_user(self, user_id: str) -> Optional[Cart]:
        return (
            Cart.objects.prefetch_related("items__product")
            .filter(user_id=user_id)
            .first()
        )

    def get_or_create(self, user_id: str) -> Cart:
        # get_or_create re-reads on IntegrityError, so two first requests
        # for the same user still end with a single cart.
        cart, created = Cart.objects.get_or_create(user_id=user_id)
        if created:
            logger.info("cart.created", user_id=user_id, cart_id=str(cart.id))
        return cart

    def get_for_update(self, id: str) -> Optional[Cart]:
        return Cart.objects.select_for_update().filter(user_id=id).first()

    def save(self, entity: Cart) -> Cart:
        entity.save()
        return entity

    @transaction.atomic
    def set_item(self, cart: Cart, product_id: UUID, quantity: int) -> None:
        updated = CartItem.objects.filter(cart=cart, product_id=product_id).update(
            quantity=quantity
        )
        if not updated:
            CartItem.objects.create(cart=cart, product_id=product_id, quantity=quantity)

    def remove_item(self, cart: Cart, product_id: UUID) -> bool:
        deleted, _ = CartItem.objects.filter(cart=cart, product_id=product_id).delete()
        return bool(deleted)

    def clear(self, cart: Cart) -> int:
        deleted, _ = CartItem.objects.filter(cart=cart).delete()
        return deleted

    def bump_version(self, cart: Cart) -> Cart:
        # Callers hold the row lock from get_for_update.
        cart.version += 1
        cart.save(update_fields=["version"])
        return cart
