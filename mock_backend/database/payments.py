"""GCash payment storage for the mock backend"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from ..models.payment import (
    AUTHORIZED_STATUSES,
    PaymentIntentRequest,
    PaymentRecord,
    PaymentStatus,
    PendingPayment,
)
from ..models.sales import SaleItem, SaleStatus
from ..security.auth import CashierClaims
from .menu import MenuDatabase, menu_db
from .sales import SalesDatabase, sales_db

logger = logging.getLogger(__name__)


class PaymentDatabase:
    """
    Payment intents and the cart snapshots waiting on them.

    ``materialize`` turns a snapshot into completed sales. It is shared by
    the provider webhook and the manual-completion endpoint and runs at
    most once per reference id.
    """

    def __init__(self, menu: MenuDatabase, sales: SalesDatabase):
        self.menu = menu
        self.sales = sales
        self.reset()

    def reset(self) -> None:
        self.payments: dict[str, PaymentRecord] = {}
        self.pending: dict[str, tuple[PendingPayment, CashierClaims]] = {}

    def create_intent(self, request: PaymentIntentRequest, checkout_base_url: str) -> PaymentRecord:
        now = datetime.utcnow()
        reference_id = f"GC-{uuid.uuid4().hex[:12].upper()}"
        payment = PaymentRecord(
            reference_id=reference_id,
            amount=request.amount,
            currency=request.currency,
            description=request.description,
            checkout_url=f"{checkout_base_url.rstrip('/')}/checkout/{reference_id}",
            created_at=now,
            updated_at=now,
        )
        self.payments[reference_id] = payment
        return payment

    def get(self, reference_id: str) -> Optional[PaymentRecord]:
        return self.payments.get(reference_id)

    def set_status(self, reference_id: str, status: PaymentStatus) -> Optional[PaymentRecord]:
        """Record a provider status; completed payments keep their status"""
        payment = self.get(reference_id)
        if not payment:
            return None
        # Completed is reserved for payments whose sales exist
        if status == PaymentStatus.COMPLETED:
            status = PaymentStatus.AUTHORIZED
        if not payment.completed:
            payment.status = status
            payment.updated_at = datetime.utcnow()
        return payment

    def save_pending(self, snapshot: PendingPayment, cashier: CashierClaims) -> None:
        self.pending[snapshot.reference_id] = (snapshot, cashier)

    def get_pending(self, reference_id: str) -> Optional[PendingPayment]:
        entry = self.pending.get(reference_id)
        return entry[0] if entry else None

    def materialize(self, reference_id: str) -> Optional[list[str]]:
        """
        Create the sales for an authorized payment.

        Returns the receipt numbers, the same list on every call once the
        payment is completed, or None when there is nothing to materialize.
        """
        payment = self.get(reference_id)
        if payment is None:
            return None
        if payment.completed:
            return payment.receipts

        entry = self.pending.get(reference_id)
        if entry is None:
            logger.warning(f"No pending order for payment {reference_id}")
            return None
        snapshot, cashier = entry

        receipts = []
        for line in snapshot.cart_lines:
            # Money is already captured: record the sale even when stock ran out
            if not self.menu.update_stock(line.product_id, -line.quantity):
                logger.warning(f"Stock short for {line.name} on payment {reference_id}")

            sale = self.sales.record(
                cashier_id=cashier.cashier_id,
                branch_id=cashier.branch_id,
                item=SaleItem(
                    menu_item_id=line.product_id,
                    menu_item_name=line.name,
                    size=line.selected_size,
                    sugar_level=line.sugar_level,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                ),
                tax_percent=snapshot.tax_percent,
                discount_percent=snapshot.discount_percent,
                payment_method="GCash",
                status=SaleStatus.COMPLETED,
                reference_id=reference_id,
            )
            receipts.append(sale.receipt_number)

        payment.completed = True
        payment.status = PaymentStatus.COMPLETED
        payment.receipts = receipts
        payment.updated_at = datetime.utcnow()
        logger.info(f"Payment {reference_id} materialized into {len(receipts)} sale(s)")
        return receipts

    def is_authorized(self, reference_id: str) -> bool:
        payment = self.get(reference_id)
        return payment is not None and payment.status in AUTHORIZED_STATUSES


# Singleton instance
payment_db = PaymentDatabase(menu_db, sales_db)
