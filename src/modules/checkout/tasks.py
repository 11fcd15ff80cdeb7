"""Asynchronous checkout tasks."""

from datetime import timedelta

import structlog
from celery import shared_task
from django.conf import settings

logger = structlog.get_logger(__name__)


@shared_task(name="checkout.recover_stalled_attempts")
def recover_stalled_attempts():
    """Settle checkout attempts left in flight by a crashed worker."""
    from modules.checkout.views import build_checkout_service

    stale_after = timedelta(seconds=settings.CHECKOUT_ATTEMPT_STALE_AFTER)
    outcome = build_checkout_service().recover_stalled(stale_after)
    logger.info("recover_stalled_attempts.executed", **outcome)
    return outcome
