"""Generic repository interface (Dependency Inversion Principle).

Provides ``IRepository[T]``, the base abstract class that the
domain-specific repository interfaces extend.  Service-layer code
depends on these abstractions, never on the Django ORM directly, which
keeps the services unit-testable with ``MagicMock`` repositories.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    ``T`` is the aggregate managed by the repository (``Product``,
    ``Cart``, ``Order``, ``CheckoutAttempt``).
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an aggregate by primary key, ``None`` if absent."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[T]:
        """Retrieve an aggregate with a row-level lock (SELECT FOR UPDATE).

        Must be called inside ``transaction.atomic()``.
        """

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an aggregate."""
