"""Unit tests for the CheckoutAttempt state machine."""

from __future__ import annotations

import pytest

from modules.checkout.constants import CheckoutState, RejectionCode
from modules.checkout.exceptions import InvalidAttemptTransition
from modules.checkout.models import CheckoutAttempt

pytestmark = pytest.mark.unit


def _attempt(state=CheckoutState.VALIDATING):
    return CheckoutAttempt(token="tok", user_id="u", state=state)


class TestTransitions:
    @pytest.mark.parametrize(
        "path",
        [
            [CheckoutState.RESERVING, CheckoutState.ORDER_CREATED, CheckoutState.CART_CLEARED],
            [CheckoutState.REJECTED],
            [CheckoutState.RESERVING, CheckoutState.COMPENSATING, CheckoutState.REJECTED],
            [CheckoutState.RESERVING, CheckoutState.VALIDATING, CheckoutState.RESERVING],
        ],
    )
    def test_allowed_paths(self, path):
        attempt = _attempt()
        for state in path:
            attempt.transition_to(state)
        assert attempt.state == path[-1]

    @pytest.mark.parametrize(
        "start,target",
        [
            (CheckoutState.VALIDATING, CheckoutState.ORDER_CREATED),
            (CheckoutState.RESERVING, CheckoutState.REJECTED),
            (CheckoutState.CART_CLEARED, CheckoutState.VALIDATING),
            (CheckoutState.REJECTED, CheckoutState.RESERVING),
        ],
    )
    def test_forbidden_edges(self, start, target):
        with pytest.raises(InvalidAttemptTransition):
            _attempt(start).transition_to(target)

    def test_settled_states(self):
        assert _attempt(CheckoutState.CART_CLEARED).is_settled
        assert _attempt(CheckoutState.REJECTED).is_settled
        assert not _attempt(CheckoutState.RESERVING).is_settled


class TestReject:
    def test_reject_while_validating(self):
        attempt = _attempt()
        attempt.reject(RejectionCode.EMPTY_CART, "Cart is empty.")

        assert attempt.state == CheckoutState.REJECTED
        assert attempt.error_code == RejectionCode.EMPTY_CART

    def test_reject_while_reserving_passes_through_compensating(self):
        attempt = _attempt(CheckoutState.RESERVING)
        attempt.reject(RejectionCode.OUT_OF_STOCK, "short", product_id=None)
        assert attempt.state == CheckoutState.REJECTED

    def test_settled_attempt_cannot_be_rejected_again(self):
        with pytest.raises(InvalidAttemptTransition):
            _attempt(CheckoutState.CART_CLEARED).reject(RejectionCode.ABANDONED, "")
