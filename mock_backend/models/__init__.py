# Mock Backend Models

from .menu import MenuItem, MenuItemSize
from .sales import BuyMenuItemDTO, SaleItem, SaleStatus, SalesTransaction
from .payment import (
    AUTHORIZED_STATUSES,
    PaymentIntentRequest,
    PaymentRecord,
    PaymentStatus,
    PendingLine,
    PendingPayment,
    QRCodeRequest,
    WebhookEvent,
)

__all__ = [
    "MenuItem",
    "MenuItemSize",
    "BuyMenuItemDTO",
    "SaleItem",
    "SaleStatus",
    "SalesTransaction",
    "AUTHORIZED_STATUSES",
    "PaymentIntentRequest",
    "PaymentRecord",
    "PaymentStatus",
    "PendingLine",
    "PendingPayment",
    "QRCodeRequest",
    "WebhookEvent",
]
