"""Domain events and the in-memory recorder aggregates carry them in.

Events are recorded on the aggregate while a service works on it and are
pulled off by the repository, which writes them to the outbox in the same
transaction as the aggregate itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID

import uuid6


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Immutable fact about an aggregate.

    Payload fields must be JSON-normalisable (UUID, Decimal, datetime,
    str, int, lists, dicts).
    """

    aggregate_id: UUID
    event_id: UUID = field(default_factory=uuid6.uuid7)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def name(self) -> str:
        return type(self).__name__


class EventRecorder:
    """Mixin for aggregates that emit domain events."""

    def record_event(self, event: DomainEvent) -> None:
        self.__dict__.setdefault("_pending_events", []).append(event)

    @property
    def pending_events(self) -> list[DomainEvent]:
        return list(self.__dict__.get("_pending_events", []))

    def pull_events(self) -> list[DomainEvent]:
        """Return the recorded events and forget them."""
        return self.__dict__.pop("_pending_events", [])
