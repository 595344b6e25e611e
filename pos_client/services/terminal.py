"""
Cashier Terminal

Bundles everything one operator terminal works with:
1. The catalog for the operator's branch
2. The cart and the modifier wizard
3. Holds, cash checkout and GCash checkout
"""

import logging
from typing import Optional

import jwt

from ..core.auth import decode_operator
from ..core.session import SessionManager, TerminalSession
from ..models import CartLine, Product
from ..storage import HoldMirror, LocalStore, PendingPaymentStore
from .backend_client import BackendClient
from .cash_checkout import CashCheckoutFlow
from .errors import CheckoutInProgressError, NotFoundError
from .gcash_checkout import GCashCheckoutFlow
from .hold import HoldOrchestrator
from .modifier_flow import ModifierSelectionFlow
from .pricing import DISCOUNT_OPTIONS, PricingSnapshot, TAX_PERCENT, compute_pricing

logger = logging.getLogger(__name__)


class Terminal:
    """Checkout flows bound to one terminal session"""

    def __init__(
        self,
        session: TerminalSession,
        client: BackendClient,
        store: LocalStore,
        tax_percent: int = TAX_PERCENT,
        currency: str = "PHP",
        poll_interval: float = 3.0,
        hold_completion_delay: float = 0.8,
    ):
        self.session = session
        self.client = client
        self.tax_percent = tax_percent
        self.catalog: list[Product] = []

        self.wizard = ModifierSelectionFlow(session.cart)
        self.holds = HoldOrchestrator(client, HoldMirror(store), hold_completion_delay)
        self.pending = PendingPaymentStore(store)
        self.cash = CashCheckoutFlow(client, session, tax_percent)
        self.gcash = GCashCheckoutFlow(
            client,
            session,
            self.pending,
            poll_interval=poll_interval,
            tax_percent=tax_percent,
            currency=currency,
        )

    # ==================== Catalog ====================

    async def load_catalog(self, branch_id: Optional[int] = None) -> list[Product]:
        """Fetch the menu, scoped to the operator's branch when known"""
        if branch_id is None and self.client.token:
            try:
                branch_id = decode_operator(self.client.token).branch_id
            except jwt.DecodeError:
                logger.warning("Bearer credential is not a JWT; fetching the full menu")

        self.catalog = await self.client.fetch_menu(branch_id)
        logger.info(f"Loaded {len(self.catalog)} menu item(s) for branch {branch_id}")
        return self.catalog

    def find_product(self, product_id: int) -> Product:
        product = next((p for p in self.catalog if p.id == product_id), None)
        if product is None:
            raise NotFoundError(f"Menu item {product_id} not found")
        return product

    # ==================== Cart ====================

    def _ensure_unlocked(self) -> None:
        if self.session.guard.busy:
            raise CheckoutInProgressError(
                f"Cart is locked by the {self.session.guard.active.value} checkout"
            )

    def _ensure_cart_editable(self) -> None:
        self._ensure_unlocked()
        self.session.ensure_not_resumed("editing the cart")

    def add_product(self, product_id: int) -> Optional[CartLine]:
        """Tap a product: direct add, or open the wizard for sized items"""
        self._ensure_cart_editable()
        line = self.wizard.open(self.find_product(product_id))
        self.session.touch()
        return line

    def confirm_selection(self) -> CartLine:
        self._ensure_cart_editable()
        line = self.wizard.confirm()
        self.session.touch()
        return line

    def set_quantity(self, product_id: int, quantity: int) -> None:
        self._ensure_cart_editable()
        if self.session.cart.get(product_id) is None:
            raise NotFoundError(f"Menu item {product_id} is not in the cart")
        self.session.cart.set_quantity(product_id, quantity)
        self.session.touch()

    def remove(self, product_id: int) -> None:
        self._ensure_cart_editable()
        self.session.cart.remove(product_id)
        self.session.touch()

    def clear(self) -> None:
        """Empty the cart; a resumed hold goes back on the hold list"""
        self._ensure_unlocked()
        if self.session.resume_marker is not None:
            self.holds.release_resumed(self.session)
            return
        self.session.cart.clear()
        self.session.touch()

    def set_discount(self, discount_percent: int) -> None:
        self._ensure_cart_editable()
        self.session.set_discount(discount_percent)

    def pricing(self) -> PricingSnapshot:
        return compute_pricing(
            self.session.cart.lines,
            self.session.discount_percent,
            self.tax_percent,
        )

    async def close(self) -> None:
        await self.gcash.aclose()

    def to_dict(self) -> dict:
        marker = self.session.resume_marker
        return {
            "sessionId": self.session.session_id,
            "cart": [
                line.model_dump(mode="json", by_alias=True)
                for line in self.session.cart.lines
            ],
            "itemCount": self.session.cart.item_count,
            "discountPercent": self.session.discount_percent,
            "discountLabel": DISCOUNT_OPTIONS[self.session.discount_percent],
            "pricing": self.pricing().to_dict(),
            "activeCheckout": self.session.guard.active.value,
            "resumeMarker": (
                {"holdId": marker.hold_id, "menuItemName": marker.menu_item_name}
                if marker else None
            ),
            "wizard": self.wizard.to_dict(),
        }


class TerminalPool:
    """Terminal per session id"""

    def __init__(self, client: BackendClient, store: LocalStore, **options):
        self.client = client
        self.store = store
        self.options = options
        self.terminals: dict[str, Terminal] = {}

    def get(self, session: TerminalSession) -> Terminal:
        terminal = self.terminals.get(session.session_id)
        if terminal is None or terminal.session is not session:
            terminal = Terminal(session, self.client, self.store, **self.options)
            self.terminals[session.session_id] = terminal
        return terminal

    async def drop(self, session_id: str) -> None:
        terminal = self.terminals.pop(session_id, None)
        if terminal:
            await terminal.close()

    async def cleanup(self, manager: SessionManager, max_age_hours: int = 24) -> int:
        """Remove idle sessions and stop their terminals"""
        removed = manager.cleanup_old_sessions(max_age_hours)
        for session_id in list(self.terminals):
            if manager.get_session(session_id) is None:
                await self.drop(session_id)
        return removed

    async def close(self) -> None:
        for session_id in list(self.terminals):
            await self.drop(session_id)
