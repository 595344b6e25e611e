"""GCash payment models"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from .cart import CartLine


class PaymentStatus(str, Enum):
    """Provider-side status of a payment intent"""
    PENDING = "pending"
    AUTHORIZED = "authorized"
    CHARGEABLE = "chargeable"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    FAILED = "failed"


# Provider authorized the payment but the sale may not exist yet
AUTHORIZED_STATUSES = frozenset({PaymentStatus.AUTHORIZED, PaymentStatus.CHARGEABLE})

# Surfaced to the operator, never auto-closed
PROVIDER_FAILURE_STATUSES = frozenset(
    {PaymentStatus.CANCELLED, PaymentStatus.EXPIRED, PaymentStatus.FAILED}
)


class _WireModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class PaymentIntentRequest(_WireModel):
    amount: Decimal = Field(gt=0)
    description: Optional[str] = None
    currency: str = "PHP"


class PaymentIntent(_WireModel):
    reference_id: str
    checkout_url: str


class QRCodeRequest(_WireModel):
    checkout_url: str


class QRCodeResponse(_WireModel):
    qr_image: str


class PaymentStatusResponse(_WireModel):
    reference_id: Optional[str] = None
    completed: bool = False
    status: PaymentStatus = PaymentStatus.PENDING


class ManualCompletionResponse(_WireModel):
    success: bool = False
    message: Optional[str] = None


class PendingPayment(_WireModel):
    """Snapshot of a GCash checkout, keyed by reference id.

    Kept locally so an open session can be rebuilt after a restart, and
    sent to the backend so the provider webhook can materialize the sale
    even if the terminal disconnects.
    """
    reference_id: str
    checkout_url: Optional[str] = None
    cart_lines: list[CartLine]
    discount_percent: int = 0
    tax_percent: int = 12
    grand_total: Decimal
    timestamp: datetime


class PaymentSession(_WireModel):
    """Open GCash session as shown to the operator"""
    reference_id: str
    checkout_url: str
    qr_image: Optional[str] = None
    status: PaymentStatus = PaymentStatus.PENDING

    def release_code(self) -> None:
        self.qr_image = None
