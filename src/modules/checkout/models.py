"""CheckoutAttempt model.

One row per attempt token.  The row is the durable record of where an
attempt stands in the checkout state machine and, once settled, of its
outcome: the order it produced or the error it was rejected with.
"""

from __future__ import annotations

import structlog
from django.db import models

from modules.checkout.constants import (
    ATTEMPT_TOKEN_MAX_LENGTH,
    SETTLED_STATES,
    VALID_TRANSITIONS,
    CheckoutState,
    RejectionCode,
)
from modules.checkout.exceptions import InvalidAttemptTransition
from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class CheckoutAttempt(BaseModel):
    token = models.CharField(max_length=ATTEMPT_TOKEN_MAX_LENGTH, unique=True)
    user_id = models.CharField(max_length=255, db_index=True)
    state = models.CharField(
        max_length=20,
        choices=CheckoutState.choices,
        default=CheckoutState.VALIDATING,
    )
    error_code = models.CharField(  # noqa: DJ01
        max_length=32,
        choices=RejectionCode.choices,
        null=True,
        blank=True,
    )
    error_detail = models.TextField(blank=True, default="")
    failed_product_id = models.UUIDField(null=True, blank=True)
    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="checkout_attempt",
    )

    class Meta:
        db_table = "checkout_attempts"
        indexes = [
            models.Index(fields=["state", "updated_at"], name="attempt_state_updated_idx"),
        ]

    @property
    def is_settled(self) -> bool:
        return self.state in SETTLED_STATES

    def transition_to(self, new_state: str) -> None:
        """Move along one edge of the state machine (in memory only)."""
        if new_state not in VALID_TRANSITIONS.get(self.state, set()):
            raise InvalidAttemptTransition(
                f"Attempt {self.token}: {self.state} -> {new_state} is not allowed."
            )
        logger.debug(
            "checkout.attempt_transition",
            attempt_token=self.token,
            from_state=self.state,
            to_state=new_state,
        )
        self.state = new_state

    def reject(self, code: str, detail: str, product_id=None) -> None:
        """Settle as ``REJECTED``, compensating first when reserving."""
        if self.state == CheckoutState.RESERVING:
            self.transition_to(CheckoutState.COMPENSATING)
        self.transition_to(CheckoutState.REJECTED)
        self.error_code = code
        self.error_detail = detail
        self.failed_product_id = product_id

    def __str__(self) -> str:
        return f"{self.token} ({self.state})"
