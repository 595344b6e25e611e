# API Routes

from .menu import router as menu_router
from .buy import router as buy_router
from .gcash import router as gcash_router

__all__ = ["menu_router", "buy_router", "gcash_router"]
