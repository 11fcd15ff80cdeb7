"""Checkout attempt repository interface.

Attempts are addressed by their token: ``get_for_update`` takes a token,
not a primary key.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional, Tuple

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.checkout.models import CheckoutAttempt


class ICheckoutAttemptRepository(IRepository["CheckoutAttempt"]):
    @abstractmethod
    def begin(self, token: str, user_id: str) -> Tuple[CheckoutAttempt, bool]:
        """Return the attempt for *token*, creating it ``VALIDATING`` if new."""

    @abstractmethod
    def get_by_token(self, token: str) -> Optional[CheckoutAttempt]:
        """Unlocked read of an attempt."""

    @abstractmethod
    def stalled_tokens(self, updated_before: datetime) -> List[str]:
        """Tokens of in-flight attempts untouched since *updated_before*."""
