"""
Hold Orchestration

Suspends the current cart as held transactions on the backend, one per
cart line, and lets the operator reopen or cancel them later.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from ..core.session import CheckoutKind, ResumeMarker, TerminalSession
from ..models import CartLine, HeldTransaction, HoldResponse, PaymentMethod
from ..storage import HoldMirror
from .backend_client import BackendError
from .errors import CheckoutError, CheckoutInProgressError, EmptyCartError, NotFoundError
from .pricing import TAX_PERCENT
from .submission import build_line_request, submit_lines

logger = logging.getLogger(__name__)


class HoldOrchestrator:
    """Converts carts into held transactions and back"""

    def __init__(
        self,
        client,
        mirror: HoldMirror,
        completion_delay: float = 0.8,
    ):
        self.client = client
        self.mirror = mirror
        self.completion_delay = completion_delay

    async def hold(
        self,
        session: TerminalSession,
        tax_percent: int = TAX_PERCENT,
    ) -> list[HeldTransaction]:
        """
        Hold every cart line.

        On success the cart and discount are cleared. When any line fails
        the whole hold fails; lines already held stay held.
        """
        lines = session.cart.lines
        if not lines:
            raise EmptyCartError()
        session.ensure_not_resumed("holding")

        session.guard.acquire(CheckoutKind.HOLD)
        try:
            discount_percent = session.discount_percent

            async def send(line: CartLine) -> HoldResponse:
                return await self.client.hold(
                    build_line_request(
                        line,
                        discount_percent,
                        tax_percent,
                        PaymentMethod.CASH,
                        include_sugar=False,
                    )
                )

            responses = await submit_lines(lines, send, "Hold")

            now = datetime.utcnow()
            holds = [
                HeldTransaction(
                    id=response.id,
                    menu_item_id=line.product_id,
                    menu_item_name=line.name,
                    category=line.category,
                    menu_item_size_id=line.selected_size_id,
                    size=line.selected_size,
                    sugar_level=line.sugar_level,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    discount_percent=discount_percent,
                    tax=tax_percent,
                    payment_method=PaymentMethod.CASH,
                    created_at=now,
                )
                for line, response in zip(lines, responses)
            ]
            for held in holds:
                self.mirror.add(held)

            session.reset_after_checkout()
            logger.info(f"Held {len(holds)} line(s): {[h.id for h in holds]}")

            await asyncio.sleep(self.completion_delay)
            return holds
        finally:
            session.guard.release(CheckoutKind.HOLD)

    def list_holds(self, search: str = None, category: str = None) -> list[HeldTransaction]:
        return self.mirror.list(search=search, category=category)

    def resume(self, session: TerminalSession, hold_id: int) -> CartLine:
        """
        Reopen a held transaction into an empty cart.

        Sets the resume marker so the cash flow finalizes the existing
        hold instead of submitting a new purchase.
        """
        held = self.mirror.get(hold_id)
        if held is None:
            raise NotFoundError(f"Hold #{hold_id} not found")
        if session.guard.busy:
            raise CheckoutInProgressError("Finish the current checkout before resuming a hold")
        if not session.cart.is_empty:
            raise CheckoutError("Clear the cart before resuming a held transaction")

        line = CartLine(
            product_id=held.menu_item_id,
            name=held.menu_item_name,
            unit_price=held.unit_price,
            quantity=held.quantity,
            category=held.category,
            selected_size=held.size,
            selected_size_id=held.menu_item_size_id,
            sugar_level=held.sugar_level,
        )
        session.cart.load([line])
        session.discount_percent = held.discount_percent
        session.resume_marker = ResumeMarker(
            hold_id=held.id,
            menu_item_name=held.menu_item_name,
            held=held,
        )
        session.touch()
        self.mirror.remove(hold_id)

        logger.info(f"Resumed hold #{held.id} ({held.menu_item_name})")
        return line

    def release_resumed(self, session: TerminalSession) -> Optional[HeldTransaction]:
        """Put a resumed hold back on the list and empty the cart"""
        marker = session.resume_marker
        if marker is None:
            return None
        if marker.held is not None:
            self.mirror.add(marker.held)
        session.reset_after_checkout()
        logger.info(f"Hold #{marker.hold_id} returned to the hold list")
        return marker.held

    async def cancel(self, hold_id: int) -> str:
        """Cancel a held transaction on the backend and drop it locally"""
        if self.mirror.get(hold_id) is None:
            raise NotFoundError(f"Hold #{hold_id} not found")

        try:
            message = await self.client.cancel_hold(hold_id)
        except BackendError as e:
            raise CheckoutError(f"Could not cancel hold #{hold_id}: {e.message}") from e

        self.mirror.remove(hold_id)
        logger.info(f"Cancelled hold #{hold_id}")
        return message
