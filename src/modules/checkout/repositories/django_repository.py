"""Django ORM implementation of the checkout attempt repository."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

import structlog
from django.core.exceptions import ValidationError

from modules.checkout.constants import IN_FLIGHT_STATES
from modules.checkout.models import CheckoutAttempt
from modules.checkout.repositories.interfaces import ICheckoutAttemptRepository

logger = structlog.get_logger(__name__)


class CheckoutAttemptDjangoRepository(ICheckoutAttemptRepository):
    def get_by_id(self, id: str) -> Optional[CheckoutAttempt]:
        try:
            return CheckoutAttempt.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_token(self, token: str) -> Optional[CheckoutAttempt]:
        return CheckoutAttempt.objects.filter(token=token).first()

    def get_for_update(self, id: str) -> Optional[CheckoutAttempt]:
        return CheckoutAttempt.objects.select_for_update().filter(token=id).first()

    def begin(self, token: str, user_id: str) -> Tuple[CheckoutAttempt, bool]:
        # Two requests racing on a new token both end up with the same row.
        attempt, created = CheckoutAttempt.objects.get_or_create(
            token=token, defaults={"user_id": user_id}
        )
        if created:
            logger.info("checkout.attempt_created", attempt_token=token, user_id=user_id)
        return attempt, created

    def save(self, entity: CheckoutAttempt) -> CheckoutAttempt:
        entity.save()
        return entity

    def stalled_tokens(self, updated_before: datetime) -> List[str]:
        return list(
            CheckoutAttempt.objects.filter(
                state__in=IN_FLIGHT_STATES, updated_at__lt=updated_before
            )
            .order_by("updated_at")
            .values_list("token", flat=True)
        )
