"""Sales transaction storage for the mock backend"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ..models.sales import SaleItem, SaleStatus, SalesTransaction

CENTS = Decimal("0.01")


def compute_totals(
    unit_price: Decimal,
    quantity: int,
    tax_percent: int,
    discount_percent: int,
) -> tuple[Decimal, Decimal, Decimal, Decimal]:
    """Subtotal, tax, discount and total of one sale line"""
    subtotal = unit_price * quantity
    tax = subtotal * Decimal(tax_percent) / 100
    discount = subtotal * Decimal(discount_percent) / 100
    total = subtotal + tax - discount
    return tuple(v.quantize(CENTS, rounding=ROUND_HALF_UP) for v in (subtotal, tax, discount, total))


class SalesDatabase:
    """In-memory sales transactions, including held ones"""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.transactions: dict[int, SalesTransaction] = {}
        self._next_id = 1

    def record(
        self,
        cashier_id: str,
        branch_id: int,
        item: SaleItem,
        tax_percent: int,
        discount_percent: int,
        payment_method: str,
        status: SaleStatus,
        reference_id: Optional[str] = None,
    ) -> SalesTransaction:
        """Store one sale line"""
        now = datetime.utcnow()
        subtotal, tax, discount, total = compute_totals(
            item.unit_price, item.quantity, tax_percent, discount_percent
        )

        sale_id = self._next_id
        self._next_id += 1

        sale = SalesTransaction(
            id=sale_id,
            receipt_number=f"{sale_id:06d}",
            cashier_id=cashier_id,
            branch_id=branch_id,
            subtotal=subtotal,
            tax=tax,
            discount=discount,
            total=total,
            payment_method=payment_method,
            status=status,
            reference_id=reference_id,
            items=[item],
            created_at=now,
            updated_at=now,
        )
        self.transactions[sale_id] = sale
        return sale

    def get(self, sale_id: int) -> Optional[SalesTransaction]:
        return self.transactions.get(sale_id)

    def update_status(self, sale_id: int, status: SaleStatus) -> Optional[SalesTransaction]:
        sale = self.get(sale_id)
        if not sale:
            return None

        sale.status = status
        sale.updated_at = datetime.utcnow()
        return sale

    def list(
        self,
        status: Optional[SaleStatus] = None,
        reference_id: Optional[str] = None,
    ) -> list[SalesTransaction]:
        sales = list(self.transactions.values())
        if status is not None:
            sales = [s for s in sales if s.status == status]
        if reference_id is not None:
            sales = [s for s in sales if s.reference_id == reference_id]
        return sales


# Singleton instance
sales_db = SalesDatabase()
