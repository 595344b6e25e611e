# Cashier Terminal Models

from .product import Product, SizeOption, OUT_OF_STOCK
from .cart import CartLine, SugarLevel, DEFAULT_SUGAR_LEVEL
from .checkout import (
    BuyMenuItemRequest,
    HeldTransaction,
    HoldResponse,
    PaymentMethod,
    PurchaseResponse,
)
from .payment import (
    AUTHORIZED_STATUSES,
    PROVIDER_FAILURE_STATUSES,
    ManualCompletionResponse,
    PaymentIntent,
    PaymentIntentRequest,
    PaymentSession,
    PaymentStatus,
    PaymentStatusResponse,
    PendingPayment,
    QRCodeRequest,
    QRCodeResponse,
)

__all__ = [
    "Product",
    "SizeOption",
    "OUT_OF_STOCK",
    "CartLine",
    "SugarLevel",
    "DEFAULT_SUGAR_LEVEL",
    "BuyMenuItemRequest",
    "HeldTransaction",
    "HoldResponse",
    "PaymentMethod",
    "PurchaseResponse",
    "AUTHORIZED_STATUSES",
    "PROVIDER_FAILURE_STATUSES",
    "ManualCompletionResponse",
    "PaymentIntent",
    "PaymentIntentRequest",
    "PaymentSession",
    "PaymentStatus",
    "PaymentStatusResponse",
    "PendingPayment",
    "QRCodeRequest",
    "QRCodeResponse",
]
