"""Payment gateway port and its default adapter.

The checkout asks the gateway for a verdict before taking any lock.  The
amount is an advisory quote of the cart snapshot; the authoritative total
is computed later from prices read under the product locks.

``ClientVerdictGateway`` trusts the verdict the storefront sends with the
request.  A real processor plugs in through the ``PAYMENT_GATEWAY``
setting (dotted path to an ``IPaymentGateway`` subclass).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

import structlog
from django.conf import settings
from django.utils.module_loading import import_string
from pydantic import BaseModel, ConfigDict

logger = structlog.get_logger(__name__)


class PaymentRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    attempt_token: str
    user_id: str
    amount: Decimal
    client_verdict: Optional[bool] = None


class PaymentVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    approved: bool
    reason: str = ""


class IPaymentGateway(ABC):
    @abstractmethod
    def authorize(self, request: PaymentRequest) -> PaymentVerdict:
        """Approve or decline *request*.  Must be idempotent per attempt token."""


class ClientVerdictGateway(IPaymentGateway):
    """Accepts the verdict supplied by the client; a missing one declines."""

    def authorize(self, request: PaymentRequest) -> PaymentVerdict:
        approved = bool(request.client_verdict)
        logger.info(
            "payment.client_verdict",
            attempt_token=request.attempt_token,
            amount=str(request.amount),
            approved=approved,
        )
        if approved:
            return PaymentVerdict(approved=True)
        return PaymentVerdict(approved=False, reason="Payment declined.")


def get_payment_gateway() -> IPaymentGateway:
    return import_string(settings.PAYMENT_GATEWAY)()
