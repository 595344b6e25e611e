"""
Cash Checkout

Idle -> AmountEntry -> Submitting -> Completed | Failed

The operator enters the tendered amount, sees the change, and confirms
once the tender covers the grand total. A resumed hold is finalized
through the backend's resume endpoint instead of a new purchase.
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Optional

from ..core.session import CheckoutKind, ResumeMarker, TerminalSession
from ..models import PaymentMethod
from .backend_client import BackendError
from .errors import (
    CheckoutError,
    EmptyCartError,
    InsufficientTenderError,
    InvalidTransitionError,
    LineSubmissionError,
)
from .pricing import Amount, PricingSnapshot, TAX_PERCENT, compute_change, compute_pricing, to_money
from .submission import submit_purchase

logger = logging.getLogger(__name__)


class CashState(str, Enum):
    IDLE = "idle"
    AMOUNT_ENTRY = "amount_entry"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    FAILED = "failed"


class CashCheckoutFlow:
    """Cash payment for one terminal session"""

    def __init__(self, client, session: TerminalSession, tax_percent: int = TAX_PERCENT):
        self.client = client
        self.session = session
        self.tax_percent = tax_percent
        self.state = CashState.IDLE
        self.pricing: Optional[PricingSnapshot] = None
        self.tendered: Optional[Decimal] = None
        self.error: Optional[str] = None
        self.receipts: list[str] = []

    @property
    def change(self) -> Decimal:
        if self.pricing is None or self.tendered is None:
            return Decimal("0.00")
        return compute_change(self.tendered, self.pricing.grand_total)

    @property
    def can_confirm(self) -> bool:
        return (
            self.state == CashState.AMOUNT_ENTRY
            and self.pricing is not None
            and self.tendered is not None
            and self.tendered >= self.pricing.grand_total
        )

    def begin(self) -> PricingSnapshot:
        """Open amount entry for the current cart"""
        if self.state in (CashState.AMOUNT_ENTRY, CashState.SUBMITTING):
            raise InvalidTransitionError("Cash checkout is already open")
        if self.session.cart.is_empty:
            raise EmptyCartError()
        marker = self.session.resume_marker
        if marker is not None and not self._matches_hold(marker):
            raise InvalidTransitionError(
                f"Cart no longer matches resumed hold #{marker.hold_id}. Clear the cart first."
            )

        self.session.guard.acquire(CheckoutKind.CASH)
        self.pricing = compute_pricing(
            self.session.cart.lines,
            self.session.discount_percent,
            self.tax_percent,
        )
        self.tendered = None
        self.error = None
        self.receipts = []
        self.state = CashState.AMOUNT_ENTRY
        return self.pricing

    def enter_amount(self, tendered: Amount) -> Decimal:
        """Record the tendered cash and return the change due"""
        if self.state != CashState.AMOUNT_ENTRY:
            raise InvalidTransitionError("Start a cash checkout first")
        self.tendered = to_money(tendered)
        return self.change

    async def confirm(self) -> Decimal:
        """Submit the sale; returns the change to hand back"""
        if self.state != CashState.AMOUNT_ENTRY:
            raise InvalidTransitionError("Start a cash checkout first")
        if not self.can_confirm:
            raise InsufficientTenderError(
                f"Tendered amount must be at least {self.pricing.grand_total}"
            )

        self.state = CashState.SUBMITTING
        marker = self.session.resume_marker
        try:
            if marker is not None:
                message = await self.client.resume_hold(marker.hold_id)
                self.receipts = [message] if message else []
                logger.info(f"Finalized hold #{marker.hold_id}: {message}")
            else:
                responses = await submit_purchase(
                    self.client,
                    self.session.cart.lines,
                    self.session.discount_percent,
                    self.tax_percent,
                    PaymentMethod.CASH,
                )
                self.receipts = [r.message for r in responses if r.message]
        except LineSubmissionError as e:
            self._fail(e.message)
            raise
        except BackendError as e:
            self._fail(e.message)
            raise CheckoutError(e.message) from e

        change = self.change
        self.session.reset_after_checkout()
        self.session.guard.release(CheckoutKind.CASH)
        self.state = CashState.COMPLETED
        logger.info(f"Cash sale completed: total={self.pricing.grand_total} change={change}")
        return change

    def cancel(self) -> None:
        """Close amount entry without touching the cart"""
        if self.state == CashState.SUBMITTING:
            raise InvalidTransitionError("Cannot cancel while the sale is being submitted")
        self.session.guard.release(CheckoutKind.CASH)
        self.state = CashState.IDLE
        self.tendered = None

    def _matches_hold(self, marker: ResumeMarker) -> bool:
        held = marker.held
        if held is None:
            return True
        lines = self.session.cart.lines
        return (
            len(lines) == 1
            and lines[0].product_id == held.menu_item_id
            and lines[0].quantity == held.quantity
            and self.session.discount_percent == held.discount_percent
        )

    def _fail(self, message: str) -> None:
        self.error = message
        self.state = CashState.FAILED
        self.session.guard.release(CheckoutKind.CASH)
        logger.error(f"Cash sale failed: {message}")

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "pricing": self.pricing.to_dict() if self.pricing else None,
            "tendered": str(self.tendered) if self.tendered is not None else None,
            "change": str(self.change),
            "canConfirm": self.can_confirm,
            "error": self.error,
            "receipts": self.receipts,
        }
