"""Checkout errors.

Every error carries a short message that is safe to show to the
operator; ``str(error)`` returns it.
"""

from typing import Optional


class CheckoutError(Exception):
    """Base exception for checkout flow errors"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EmptyCartError(CheckoutError):
    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class InsufficientTenderError(CheckoutError):
    pass


class InvalidDiscountError(CheckoutError):
    pass


class OutOfStockError(CheckoutError):
    pass


class InvalidTransitionError(CheckoutError):
    status_code = 409


class CheckoutInProgressError(CheckoutError):
    status_code = 409


class PaymentIntentError(CheckoutError):
    status_code = 502


class LineSubmissionError(CheckoutError):
    """A per-line hold or purchase submission was rejected.

    Lines already accepted by the backend are listed in ``sent``; they are
    not rolled back.
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        product_name: str,
        sent: Optional[list] = None,
        failures: Optional[list] = None,
    ):
        super().__init__(message)
        self.product_name = product_name
        self.sent = sent or []
        self.failures = failures or []


class NotFoundError(CheckoutError):
    status_code = 404
