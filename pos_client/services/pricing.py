"""
Pricing

Subtotal, tax, discount and grand total for a cart. Tax is computed on
the pre-discount subtotal. Every checkout path prices through
``compute_pricing`` so displayed and submitted totals never diverge.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Union

from ..models import CartLine
from .errors import InvalidDiscountError

TAX_PERCENT = 12

CENTS = Decimal("0.01")

# Discount percent -> label offered at the till
DISCOUNT_OPTIONS: dict[int, str] = {
    0: "No Discount",
    5: "Senior Citizen",
    10: "PWD Discount",
    15: "Student Discount",
    20: "Member Promo",
    25: "Staff Discount",
}

Amount = Union[Decimal, int, float, str]


@dataclass(frozen=True)
class PricingSnapshot:
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    grand_total: Decimal

    def to_dict(self) -> dict[str, str]:
        return {
            "subtotal": str(self.subtotal),
            "taxAmount": str(self.tax_amount),
            "discountAmount": str(self.discount_amount),
            "grandTotal": str(self.grand_total),
        }


def to_money(value: Amount) -> Decimal:
    """Convert an amount to a two-place Decimal"""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def validate_discount(discount_percent: int) -> int:
    if discount_percent not in DISCOUNT_OPTIONS:
        raise InvalidDiscountError(f"Unsupported discount: {discount_percent}%")
    return discount_percent


def compute_pricing(
    lines: Iterable[CartLine],
    discount_percent: int = 0,
    tax_percent: int = TAX_PERCENT,
) -> PricingSnapshot:
    """Price a cart. Pure: identical inputs give identical output."""
    validate_discount(discount_percent)

    subtotal = sum((line.unit_price * line.quantity for line in lines), Decimal("0"))
    discount_amount = subtotal * discount_percent / 100
    tax_amount = subtotal * tax_percent / 100
    grand_total = max(Decimal("0"), subtotal + tax_amount - discount_amount)

    return PricingSnapshot(
        subtotal=to_money(subtotal),
        tax_amount=to_money(tax_amount),
        discount_amount=to_money(discount_amount),
        grand_total=to_money(grand_total),
    )


def compute_change(tendered: Amount, grand_total: Amount) -> Decimal:
    """Change due to the customer, never negative"""
    return max(Decimal("0.00"), to_money(tendered) - to_money(grand_total))
