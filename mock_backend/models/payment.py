"""GCash payment models for the mock backend"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class PaymentStatus(str, Enum):
    PENDING = "pending"
    AUTHORIZED = "authorized"
    CHARGEABLE = "chargeable"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    FAILED = "failed"


AUTHORIZED_STATUSES = frozenset({PaymentStatus.AUTHORIZED, PaymentStatus.CHARGEABLE})


class _WireModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class PaymentIntentRequest(_WireModel):
    amount: Decimal = Field(gt=0)
    description: Optional[str] = None
    currency: str = "PHP"


class QRCodeRequest(_WireModel):
    checkout_url: str = Field(min_length=1)


class PaymentRecord(_WireModel):
    """Provider-side payment intent"""
    reference_id: str
    amount: Decimal
    currency: str = "PHP"
    description: Optional[str] = None
    checkout_url: str
    status: PaymentStatus = PaymentStatus.PENDING
    completed: bool = False
    receipts: list[str] = []
    created_at: datetime
    updated_at: datetime


class PendingLine(_WireModel):
    product_id: int
    name: str
    unit_price: Decimal
    quantity: int = Field(gt=0)
    category: str = ""
    selected_size: Optional[str] = None
    selected_size_id: Optional[int] = None
    sugar_level: Optional[str] = None


class PendingPayment(_WireModel):
    """Cart snapshot the webhook materializes into sales"""
    reference_id: str
    checkout_url: Optional[str] = None
    cart_lines: list[PendingLine]
    discount_percent: int = 0
    tax_percent: int = 12
    grand_total: Decimal
    timestamp: datetime


class WebhookEvent(_WireModel):
    reference_id: str
    status: PaymentStatus
