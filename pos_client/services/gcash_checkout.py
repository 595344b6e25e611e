"""
GCash Checkout

Idle -> CreatingIntent -> AwaitingAuthorization -> Completing -> Completed
                          AwaitingAuthorization -> Cancelled

A payment intent is created for the grand total and its checkout URL is
rendered as a scannable code. While the session is open a polling task
asks the backend for the payment status every ``poll_interval`` seconds:

- ``completed`` means the provider webhook already materialized the sale.
- ``authorized`` / ``chargeable`` means the provider took the money but
  the sale may not exist yet, so the terminal asks the backend to
  complete it manually. The backend makes that call idempotent.

Both signals, and the operator's own force-complete, write into one
single-assignment outcome. The first writer runs the completion sequence;
later writers are no-ops.
"""

import asyncio
import logging
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import ValidationError

from ..core.session import CheckoutKind, TerminalSession
from ..models import (
    AUTHORIZED_STATUSES,
    PROVIDER_FAILURE_STATUSES,
    PaymentIntentRequest,
    PaymentSession,
    PaymentStatus,
    PendingPayment,
)
from ..storage import PendingPaymentStore
from .backend_client import BackendError
from .errors import (
    CheckoutError,
    CheckoutInProgressError,
    EmptyCartError,
    InvalidTransitionError,
    NotFoundError,
    PaymentIntentError,
)
from .pricing import PricingSnapshot, TAX_PERCENT, compute_pricing

logger = logging.getLogger(__name__)


class GCashState(str, Enum):
    IDLE = "idle"
    CREATING_INTENT = "creating_intent"
    AWAITING_AUTHORIZATION = "awaiting_authorization"
    COMPLETING = "completing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


OPEN_STATES = frozenset({GCashState.AWAITING_AUTHORIZATION, GCashState.COMPLETING})

# Who settled the session
WEBHOOK = "webhook"
POLL_COMPLETION = "poll"
OPERATOR_COMPLETION = "operator"


class GCashCheckoutFlow:
    """QR payment session for one terminal"""

    def __init__(
        self,
        client,
        session: TerminalSession,
        pending_store: PendingPaymentStore,
        poll_interval: float = 3.0,
        tax_percent: int = TAX_PERCENT,
        currency: str = "PHP",
    ):
        self.client = client
        self.session = session
        self.pending_store = pending_store
        self.poll_interval = poll_interval
        self.tax_percent = tax_percent
        self.currency = currency

        self.state = GCashState.IDLE
        self.payment: Optional[PaymentSession] = None
        self.reference_id: Optional[str] = None
        self.pricing: Optional[PricingSnapshot] = None
        self.advisory: Optional[str] = None
        self.error: Optional[str] = None
        self.completed_by: Optional[str] = None

        self._outcome: Optional[asyncio.Future] = None
        self._poll_task: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        return self.state in OPEN_STATES

    # ==================== Session lifecycle ====================

    async def start(self) -> PaymentSession:
        """Create a payment intent for the cart and open the session"""
        if self.is_open or self.state == GCashState.CREATING_INTENT:
            raise InvalidTransitionError("A GCash session is already open")
        if self.session.cart.is_empty:
            raise EmptyCartError()
        self.session.ensure_not_resumed("GCash payment")

        lines = self.session.cart.lines
        discount_percent = self.session.discount_percent
        pricing = compute_pricing(lines, discount_percent, self.tax_percent)
        if pricing.grand_total <= Decimal("0"):
            raise CheckoutError("Nothing to charge for this cart")

        self.session.guard.acquire(CheckoutKind.GCASH)
        self._reset()
        self.state = GCashState.CREATING_INTENT
        reference_id = None

        try:
            intent = await self.client.create_payment_intent(
                PaymentIntentRequest(
                    amount=pricing.grand_total,
                    description=f"{len(lines)} item(s)",
                    currency=self.currency,
                )
            )
            reference_id = intent.reference_id

            snapshot = PendingPayment(
                reference_id=reference_id,
                checkout_url=intent.checkout_url,
                cart_lines=lines,
                discount_percent=discount_percent,
                tax_percent=self.tax_percent,
                grand_total=pricing.grand_total,
                timestamp=datetime.utcnow(),
            )
            self.pending_store.save(snapshot)
            await self.client.save_pending_payment(snapshot)

            qr_image = await self.client.get_qr_code(intent.checkout_url)
        except (BackendError, ValidationError) as e:
            message = getattr(e, "message", None) or "Invalid response from payment service"
            if reference_id:
                self.pending_store.delete(reference_id)
            self.session.guard.release(CheckoutKind.GCASH)
            self.state = GCashState.IDLE
            self.error = message
            logger.error(f"GCash intent creation failed: {message}")
            raise PaymentIntentError(f"Could not start GCash payment: {message}") from e

        self.pricing = pricing
        self._open(
            PaymentSession(
                reference_id=reference_id,
                checkout_url=intent.checkout_url,
                qr_image=qr_image,
            )
        )
        logger.info(f"GCash session {reference_id} opened for {pricing.grand_total}")
        return self.payment

    async def restore(self, reference_id: str) -> PaymentSession:
        """Reopen a session from its local pending-payment snapshot"""
        if self.is_open or self.state == GCashState.CREATING_INTENT:
            raise InvalidTransitionError("A GCash session is already open")

        snapshot = self.pending_store.get(reference_id)
        if snapshot is None:
            raise NotFoundError(f"No pending payment {reference_id}")
        if self.session.guard.busy:
            raise CheckoutInProgressError("Finish the current checkout before restoring a payment")
        if not self.session.cart.is_empty:
            raise CheckoutError("Clear the cart before restoring a pending payment")
        if not snapshot.checkout_url:
            raise PaymentIntentError(f"Pending payment {reference_id} has no checkout link")

        self.session.guard.acquire(CheckoutKind.GCASH)
        self._reset()
        try:
            qr_image = await self.client.get_qr_code(snapshot.checkout_url)
        except (BackendError, ValidationError) as e:
            self.session.guard.release(CheckoutKind.GCASH)
            message = getattr(e, "message", None) or "Invalid response from payment service"
            self.error = message
            raise PaymentIntentError(f"Could not restore GCash payment: {message}") from e

        self.session.cart.load(snapshot.cart_lines)
        self.session.discount_percent = snapshot.discount_percent
        self.pricing = compute_pricing(
            snapshot.cart_lines, snapshot.discount_percent, snapshot.tax_percent
        )
        self._open(
            PaymentSession(
                reference_id=reference_id,
                checkout_url=snapshot.checkout_url,
                qr_image=qr_image,
            )
        )
        logger.info(f"GCash session {reference_id} restored")
        return self.payment

    def cancel(self) -> bool:
        """
        Close the session at the operator's request.

        The provider-side intent is left alone; only local resources are
        released. Returns False when no session was open.
        """
        payment, outcome = self.payment, self._outcome
        if payment is None or outcome is None or outcome.done():
            return False

        outcome.set_result(GCashState.CANCELLED)
        self._stop_polling()
        payment.release_code()
        self.pending_store.delete(payment.reference_id)
        self.session.guard.release(CheckoutKind.GCASH)
        self.payment = None
        self.state = GCashState.CANCELLED
        logger.info(f"GCash session {payment.reference_id} cancelled by operator")
        return True

    async def force_complete(self) -> bool:
        """Operator-triggered manual completion; races the polling task"""
        if self.state == GCashState.COMPLETED:
            return True
        if not self.is_open:
            raise InvalidTransitionError("No GCash session is open")

        try:
            return await self._complete(self.payment, self._outcome, OPERATOR_COMPLETION)
        except BackendError as e:
            raise CheckoutError(f"Manual completion failed: {e.message}") from e

    async def wait(self) -> GCashState:
        """Wait until the open session is completed or cancelled"""
        if self._outcome is None:
            return self.state
        return await asyncio.shield(self._outcome)

    async def aclose(self) -> None:
        """Stop the polling task, e.g. on shutdown"""
        task = self._poll_task
        self._poll_task = None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    # ==================== Reconciliation ====================

    def _reset(self) -> None:
        self.payment = None
        self.pricing = None
        self.advisory = None
        self.error = None
        self.completed_by = None

    def _open(self, payment: PaymentSession) -> None:
        self.payment = payment
        self.reference_id = payment.reference_id
        self.state = GCashState.AWAITING_AUTHORIZATION
        self._outcome = asyncio.get_running_loop().create_future()
        self._poll_task = asyncio.create_task(self._poll_loop(payment, self._outcome))
        self._poll_task.add_done_callback(self._on_poll_done)

    def _stop_polling(self) -> None:
        task = self._poll_task
        self._poll_task = None
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _poll_loop(self, payment: PaymentSession, outcome: asyncio.Future) -> None:
        # Ticks are sequential: the next sleep starts only after the
        # previous status query and any completion call have returned.
        while not outcome.done():
            await asyncio.sleep(self.poll_interval)
            if outcome.done():
                break
            try:
                await self._poll_once(payment, outcome)
            except (BackendError, ValidationError) as e:
                message = getattr(e, "message", None) or str(e)
                logger.warning(f"Status poll for {payment.reference_id} failed: {message}")

    def _on_poll_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.advisory = "Status checks stopped. Complete or cancel the payment manually."
            logger.error(f"Status polling for {self.reference_id} stopped: {error!r}", exc_info=error)

    async def _poll_once(self, payment: PaymentSession, outcome: asyncio.Future) -> None:
        status = await self.client.get_payment_status(payment.reference_id)
        if outcome.done():
            return

        payment.status = status.status

        if status.completed:
            self._settle(payment, outcome, WEBHOOK)
            return

        if status.status in AUTHORIZED_STATUSES:
            await self._complete(payment, outcome, POLL_COMPLETION)
        elif status.status in PROVIDER_FAILURE_STATUSES:
            self.advisory = (
                f"Payment {status.status.value}. Cancel the session to return to the cart."
            )
            logger.warning(f"GCash session {payment.reference_id}: provider reports {status.status.value}")

    async def _complete(
        self,
        payment: PaymentSession,
        outcome: asyncio.Future,
        source: str,
    ) -> bool:
        if outcome.done():
            return self.state == GCashState.COMPLETED

        self.state = GCashState.COMPLETING
        try:
            result = await self.client.complete_payment(payment.reference_id)
        finally:
            if not outcome.done() and self.state == GCashState.COMPLETING:
                self.state = GCashState.AWAITING_AUTHORIZATION

        if outcome.done():
            return self.state == GCashState.COMPLETED

        if result.success:
            return self._settle(payment, outcome, source)

        logger.info(f"GCash session {payment.reference_id} not completed yet: {result.message}")
        return False

    def _settle(self, payment: PaymentSession, outcome: asyncio.Future, source: str) -> bool:
        """Run the completion sequence once; later callers get False"""
        if outcome.done():
            return False
        outcome.set_result(GCashState.COMPLETED)

        self._stop_polling()
        payment.release_code()
        payment.status = PaymentStatus.COMPLETED
        self.pending_store.delete(payment.reference_id)
        self.session.reset_after_checkout()
        self.session.guard.release(CheckoutKind.GCASH)
        self.completed_by = source
        self.payment = None
        self.state = GCashState.COMPLETED
        logger.info(f"GCash session {payment.reference_id} completed via {source}")
        return True

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "referenceId": self.reference_id,
            "payment": self.payment.model_dump(by_alias=True, mode="json") if self.payment else None,
            "pricing": self.pricing.to_dict() if self.pricing else None,
            "advisory": self.advisory,
            "error": self.error,
            "completedBy": self.completed_by,
        }
