"""Checkout Orchestrator (Use Cases).

Turns a user's cart into an order exactly once per attempt token.

Flow:
1. Begin or look up the attempt.  A settled attempt replays its outcome.
2. Snapshot the cart; nothing purchasable -> ``EmptyCart``.
3. Ask the payment gateway for a verdict, holding no lock.
4. In one transaction: lock attempt -> cart -> products (ascending id),
   verify the cart version, decrement stock, append the order, clear the
   cart and settle the attempt.  A short product is compensated and the
   whole transaction rolled back.

Lock waits are bounded by ``LOCK_WAIT_TIMEOUT``; contention surfaces as
``CheckoutBusy`` and leaves the attempt resumable.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Dict, List, Optional

import structlog
from django.db import DatabaseError, transaction
from django.utils import timezone

from modules.checkout.constants import (
    IN_FLIGHT_STATES,
    CheckoutState,
    RejectionCode,
)
from modules.checkout.exceptions import (
    AttemptAbandoned,
    AttemptConflict,
    CartChanged,
    CheckoutBusy,
    EmptyCart,
    PaymentFailed,
    StorageUnavailable,
)
from modules.checkout.payments import PaymentRequest
from modules.core.db import bounded_lock_wait, is_lock_contention
from modules.inventory.exceptions import InsufficientStock, OutOfStock
from modules.orders.dtos import AppendOrderDTO, OrderLineDTO
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.carts.dtos import CartLineDTO, CartSnapshotDTO
    from modules.carts.services import CartService
    from modules.checkout.dtos import CheckoutDTO
    from modules.checkout.models import CheckoutAttempt
    from modules.checkout.payments import IPaymentGateway
    from modules.checkout.repositories.interfaces import ICheckoutAttemptRepository
    from modules.inventory.services import InventoryService
    from modules.orders.models import Order
    from modules.orders.services import OrderLedgerService
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class CheckoutService:
    """Application service for the checkout use-case.

    Receives its collaborators via constructor injection (DIP).
    """

    def __init__(
        self,
        attempt_repository: ICheckoutAttemptRepository,
        cart_service: CartService,
        inventory_service: InventoryService,
        order_service: OrderLedgerService,
        product_repository: IProductRepository,
        payment_gateway: IPaymentGateway,
    ) -> None:
        self._attempts = attempt_repository
        self._carts = cart_service
        self._inventory = inventory_service
        self._orders = order_service
        self._products = product_repository
        self._gateway = payment_gateway

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def checkout(self, dto: CheckoutDTO) -> Order:
        """Place an order from the user's cart.

        Raises:
            AttemptConflict: the token belongs to another user.
            EmptyCart: nothing purchasable in the cart.
            PaymentFailed: the gateway declined.
            OutOfStock: a product is short; cart and stock are unchanged.
            CartChanged: the cart was edited mid-checkout; retry.
            AttemptAbandoned: crash recovery settled this attempt.
            CheckoutBusy: lock wait exceeded; retry with the same token.
            StorageUnavailable: any other database failure.
        """
        log = logger.bind(user_id=dto.user_id, attempt_token=dto.attempt_token)
        try:
            return self._run(dto, log)
        except DatabaseError as exc:
            if is_lock_contention(exc):
                log.warning("checkout.busy", error=str(exc))
                raise CheckoutBusy(str(exc)) from exc
            log.error("checkout.storage_failure", error=str(exc))
            raise StorageUnavailable(str(exc)) from exc

    def recover_stalled(self, stale_after: timedelta) -> Dict[str, int]:
        """Settle attempts left in flight by a crashed worker.

        An attempt whose order exists is completed; any other is rejected
        as ``abandoned``.  The reservation is a single transaction, so an
        abandoned attempt never holds stock.
        """
        cutoff = timezone.now() - stale_after
        outcome = {"completed": 0, "abandoned": 0}
        for token in self._attempts.stalled_tokens(cutoff):
            result = self._recover(token, cutoff)
            if result:
                outcome[result] += 1
        logger.info("checkout.recovery_finished", **outcome)
        return outcome

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _run(self, dto: CheckoutDTO, log) -> Order:
        attempt = self._begin(dto, log)
        if attempt.is_settled:
            log.info("checkout.replayed", state=attempt.state)
            return self._replay(attempt)

        snapshot = self._carts.snapshot(dto.user_id)
        if not any(line.available for line in snapshot.lines):
            log.info("checkout.rejected", reason=RejectionCode.EMPTY_CART)
            return self._reject(dto.attempt_token, RejectionCode.EMPTY_CART, "Cart is empty.")

        verdict = self._gateway.authorize(
            PaymentRequest(
                attempt_token=dto.attempt_token,
                user_id=dto.user_id,
                amount=snapshot.quote,
                client_verdict=dto.payment_success,
            )
        )
        if not verdict.approved:
            log.info("checkout.rejected", reason=RejectionCode.PAYMENT_FAILED)
            return self._reject(
                dto.attempt_token,
                RejectionCode.PAYMENT_FAILED,
                verdict.reason or "Payment failed.",
            )

        attempt = self._mark_reserving(dto.attempt_token)
        if attempt.is_settled:
            return self._replay(attempt)

        try:
            attempt = self._reserve_and_commit(dto, snapshot, log)
        except OutOfStock as exc:
            log.info("checkout.rejected", reason=RejectionCode.OUT_OF_STOCK)
            return self._reject(
                dto.attempt_token,
                RejectionCode.OUT_OF_STOCK,
                str(exc),
                product_id=exc.product_id,
            )
        except EmptyCart as exc:
            log.info("checkout.rejected", reason=RejectionCode.EMPTY_CART)
            return self._reject(dto.attempt_token, RejectionCode.EMPTY_CART, str(exc))
        return self._replay(attempt)

    def _begin(self, dto: CheckoutDTO, log) -> CheckoutAttempt:
        attempt, created = self._attempts.begin(dto.attempt_token, dto.user_id)
        if attempt.user_id != dto.user_id:
            log.warning("checkout.attempt_conflict", owner=attempt.user_id)
            raise AttemptConflict()
        if not created and attempt.state == CheckoutState.RESERVING:
            attempt = self._resume(dto.attempt_token, log)
        return attempt

    @transaction.atomic
    def _resume(self, token: str, log) -> CheckoutAttempt:
        bounded_lock_wait()
        attempt = self._attempts.get_for_update(token)
        if attempt.state == CheckoutState.RESERVING:
            attempt.transition_to(CheckoutState.VALIDATING)
            self._attempts.save(attempt)
            log.info("checkout.attempt_resumed")
        return attempt

    @transaction.atomic
    def _mark_reserving(self, token: str) -> CheckoutAttempt:
        bounded_lock_wait()
        attempt = self._attempts.get_for_update(token)
        if attempt.state == CheckoutState.VALIDATING:
            attempt.transition_to(CheckoutState.RESERVING)
            self._attempts.save(attempt)
        return attempt

    @transaction.atomic
    def _reserve_and_commit(
        self, dto: CheckoutDTO, snapshot: CartSnapshotDTO, log
    ) -> CheckoutAttempt:
        bounded_lock_wait()

        # Lock order: attempt -> cart -> products (ascending id).
        attempt = self._attempts.get_for_update(dto.attempt_token)
        if attempt.is_settled:
            return attempt
        if attempt.state == CheckoutState.VALIDATING:
            attempt.transition_to(CheckoutState.RESERVING)

        cart = self._carts.lock(dto.user_id)
        if cart.version != snapshot.version:
            log.info(
                "checkout.cart_changed",
                snapshot_version=snapshot.version,
                current_version=cart.version,
            )
            raise CartChanged()

        lines = self._reserve(self._purchasable_lines(snapshot, log), log)
        if not lines:
            raise EmptyCart()

        attempt.transition_to(CheckoutState.ORDER_CREATED)
        order = self._orders.append(
            AppendOrderDTO(
                user_id=dto.user_id,
                shipping_address=dto.shipping_address,
                idempotency_key=dto.attempt_token,
                items=lines,
            )
        )
        self._carts.clear(dto.user_id)

        attempt.order = order
        attempt.transition_to(CheckoutState.CART_CLEARED)
        self._attempts.save(attempt)

        log.info(
            "checkout.completed",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=str(order.total_amount),
        )
        return attempt

    def _purchasable_lines(self, snapshot: CartSnapshotDTO, log) -> List[CartLineDTO]:
        alive = self._products.existing_ids(str(line.product_id) for line in snapshot.lines)
        lines = []
        for line in snapshot.lines:
            if str(line.product_id) in alive:
                lines.append(line)
            else:
                log.info("checkout.line_dropped", product_id=str(line.product_id))
        return sorted(lines, key=lambda line: str(line.product_id))

    def _reserve(self, lines: List[CartLineDTO], log) -> List[OrderLineDTO]:
        """Decrement each line; on a short product undo the ones already taken."""
        reserved: List[OrderLineDTO] = []
        for line in lines:
            try:
                product = self._inventory.decrement(str(line.product_id), line.quantity)
            except ProductNotFound:
                log.info("checkout.line_dropped", product_id=str(line.product_id))
                continue
            except InsufficientStock as exc:
                self._compensate(reserved, log)
                raise OutOfStock(
                    exc.product_id,
                    f"Product {exc.product_id} is out of stock: requested "
                    f"{exc.requested}, available {exc.available}.",
                ) from exc
            reserved.append(
                OrderLineDTO(
                    product_id=product.id,
                    quantity=line.quantity,
                    unit_price=product.price,
                )
            )
        return reserved

    def _compensate(self, reserved: List[OrderLineDTO], log) -> None:
        log.info("checkout.compensating", lines=len(reserved))
        for line in reversed(reserved):
            self._inventory.increment(str(line.product_id), line.quantity)

    @transaction.atomic
    def _reject_attempt(
        self, token: str, code: str, detail: str, product_id=None
    ) -> CheckoutAttempt:
        bounded_lock_wait()
        attempt = self._attempts.get_for_update(token)
        # A concurrent request with the same token may have settled it first.
        if not attempt.is_settled:
            attempt.reject(code, detail, product_id)
            self._attempts.save(attempt)
        return attempt

    def _reject(
        self, token: str, code: str, detail: str, product_id=None
    ) -> Order:
        return self._replay(self._reject_attempt(token, code, detail, product_id))

    def _replay(self, attempt: CheckoutAttempt) -> Order:
        """The recorded outcome of a settled attempt: its order, or its error."""
        if attempt.state == CheckoutState.CART_CLEARED:
            return self._orders.get_order(attempt.order_id, attempt.user_id)
        raise _recorded_error(attempt)

    @transaction.atomic
    def _recover(self, token: str, cutoff) -> Optional[str]:
        bounded_lock_wait()
        attempt = self._attempts.get_for_update(token)
        if attempt.state not in IN_FLIGHT_STATES or attempt.updated_at >= cutoff:
            return None

        log = logger.bind(attempt_token=token, state=attempt.state)
        order = self._orders.find_by_attempt(token)
        if order:
            if attempt.state == CheckoutState.VALIDATING:
                attempt.transition_to(CheckoutState.RESERVING)
            attempt.transition_to(CheckoutState.ORDER_CREATED)
            attempt.order = order
            attempt.transition_to(CheckoutState.CART_CLEARED)
            self._attempts.save(attempt)
            log.info("checkout.recovered_completed", order_id=str(order.id))
            return "completed"

        attempt.reject(RejectionCode.ABANDONED, "Checkout attempt was abandoned.")
        self._attempts.save(attempt)
        log.info("checkout.recovered_abandoned")
        return "abandoned"


def _recorded_error(attempt: CheckoutAttempt) -> Exception:
    code = attempt.error_code
    detail = attempt.error_detail or None
    if code == RejectionCode.OUT_OF_STOCK:
        return OutOfStock(attempt.failed_product_id, detail)
    if code == RejectionCode.PAYMENT_FAILED:
        return PaymentFailed(detail)
    if code == RejectionCode.EMPTY_CART:
        return EmptyCart(detail)
    return AttemptAbandoned(detail)
