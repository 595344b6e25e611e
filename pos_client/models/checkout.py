"""Checkout models shared by the terminal and the backend"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .cart import SugarLevel


class PaymentMethod(str, Enum):
    CASH = "Cash"
    GCASH = "GCash"


class BuyMenuItemRequest(BaseModel):
    """One cart line submitted as a purchase or a hold"""
    menu_item_id: int
    menu_item_size_id: Optional[int] = None
    size: Optional[str] = None
    sugar_level: Optional[SugarLevel] = None
    quantity: int = Field(gt=0)
    discount_percent: int = Field(default=0, ge=0, le=100)
    tax: int = Field(default=12, ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    reference_id: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PurchaseResponse(BaseModel):
    """Backend answer for a purchase line. The receipt is advisory text."""
    message: str = ""
    receipt_number: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class HoldResponse(BaseModel):
    """Backend answer for a held line"""
    id: int
    message: str = ""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class HeldTransaction(BaseModel):
    """Suspended sale line, mirrored locally for display and resume"""
    id: int
    menu_item_id: int
    menu_item_name: str = ""
    category: str = ""
    menu_item_size_id: Optional[int] = None
    size: Optional[str] = None
    sugar_level: Optional[SugarLevel] = None
    unit_price: Decimal = Decimal("0")
    quantity: int = Field(gt=0)
    discount_percent: int = 0
    tax: int = 12
    payment_method: PaymentMethod = PaymentMethod.CASH
    created_at: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @property
    def total_amount(self) -> Decimal:
        subtotal = self.unit_price * self.quantity
        total = subtotal + subtotal * self.tax / 100 - subtotal * self.discount_percent / 100
        return total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
