"""Sales transaction models for the mock backend"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class SaleStatus(str, Enum):
    HOLD = "Hold"
    COMPLETED = "Completed"
    CANCELED = "Canceled"


class BuyMenuItemDTO(BaseModel):
    """One purchased or held menu item line"""
    menu_item_id: int
    menu_item_size_id: Optional[int] = None
    size: Optional[str] = None
    sugar_level: Optional[str] = None
    quantity: int = Field(gt=0)
    discount_percent: int = Field(default=0, ge=0, le=100)
    tax: int = Field(default=12, ge=0)
    payment_method: str = "Cash"
    reference_id: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class SaleItem(BaseModel):
    menu_item_id: int
    menu_item_name: str
    size: Optional[str] = None
    sugar_level: Optional[str] = None
    quantity: int
    unit_price: Decimal

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class SalesTransaction(BaseModel):
    id: int
    receipt_number: str
    cashier_id: str
    branch_id: int
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    payment_method: str = "Cash"
    status: SaleStatus
    reference_id: Optional[str] = None
    items: list[SaleItem] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def receipt_message(self) -> str:
        return (
            f"Purchase successful (Receipt #{self.receipt_number})\n"
            f"Subtotal:{self.subtotal}\nTax:{self.tax}\n"
            f"Discount:{self.discount}\nTotal:{self.total}"
        )
