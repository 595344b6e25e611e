# Cashier Terminal Routes

from .terminal import router as terminal_router
from .checkout import router as checkout_router

__all__ = ["terminal_router", "checkout_router"]
