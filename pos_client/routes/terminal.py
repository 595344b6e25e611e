"""Terminal session, cart and wizard routes"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..core.config import settings
from ..core.session import session_manager
from ..models import SugarLevel
from ..services.backend_client import BackendClient
from ..services.pricing import DISCOUNT_OPTIONS
from ..services.terminal import Terminal, TerminalPool
from ..storage import LocalStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/terminal", tags=["Terminal"])

# Initialize services (created lazily, closed on shutdown)
backend_client: Optional[BackendClient] = None
local_store: Optional[LocalStore] = None
terminal_pool: Optional[TerminalPool] = None


def get_backend_client() -> BackendClient:
    """Get or create backend client"""
    global backend_client
    if backend_client is None:
        backend_client = BackendClient(
            settings.backend_base_url,
            token=settings.api_token,
            timeout=settings.request_timeout,
        )
    return backend_client


def get_local_store() -> LocalStore:
    """Get or create the terminal's persisted state"""
    global local_store
    if local_store is None:
        local_store = LocalStore(settings.local_state_path)
    return local_store


def get_terminal_pool() -> TerminalPool:
    """Get or create the terminal pool"""
    global terminal_pool
    if terminal_pool is None:
        terminal_pool = TerminalPool(
            get_backend_client(),
            get_local_store(),
            tax_percent=settings.tax_percent,
            currency=settings.currency,
            poll_interval=settings.gcash_poll_interval,
            hold_completion_delay=settings.hold_completion_delay,
        )
    return terminal_pool


def get_terminal(
    session_id: str,
    pool: TerminalPool = Depends(get_terminal_pool),
) -> Terminal:
    """Resolve the terminal for a session id path parameter"""
    session = session_manager.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return pool.get(session)


async def shutdown() -> None:
    """Stop polling tasks and close the backend client"""
    global backend_client, terminal_pool
    if terminal_pool:
        await terminal_pool.close()
        terminal_pool = None
    if backend_client:
        await backend_client.close()
        backend_client = None


class AddProductRequest(BaseModel):
    product_id: int


class QuantityRequest(BaseModel):
    quantity: int


class SizeRequest(BaseModel):
    size_id: int


class SugarRequest(BaseModel):
    sugar_level: SugarLevel


class DiscountRequest(BaseModel):
    discount_percent: int


# ==================== Sessions ====================


@router.post("/sessions")
async def create_session(pool: TerminalPool = Depends(get_terminal_pool)):
    """Open a new terminal session with an empty cart"""
    removed = await pool.cleanup(session_manager, settings.session_max_age_hours)
    if removed:
        logger.info(f"Dropped {removed} idle terminal session(s)")
    session = session_manager.create_session()
    return pool.get(session).to_dict()


@router.get("/sessions/{session_id}")
async def get_session(terminal: Terminal = Depends(get_terminal)):
    """Get cart, pricing and checkout state of a session"""
    return terminal.to_dict()


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, pool: TerminalPool = Depends(get_terminal_pool)):
    """Delete a session"""
    session = session_manager.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    if session.guard.busy:
        raise HTTPException(status_code=409, detail="Finish the current checkout first")

    await pool.drop(session_id)
    session_manager.delete_session(session_id)
    return {"message": "Session deleted"}


# ==================== Catalog ====================


@router.get("/sessions/{session_id}/catalog")
async def get_catalog(
    branch_id: Optional[int] = None,
    terminal: Terminal = Depends(get_terminal),
):
    """Load the menu for the operator's branch"""
    products = await terminal.load_catalog(branch_id)
    return {
        "products": [p.model_dump(mode="json", by_alias=True) for p in products],
        "count": len(products),
    }


@router.get("/discounts")
async def list_discounts():
    """Discounts offered at the till"""
    return [
        {"percent": percent, "label": label}
        for percent, label in DISCOUNT_OPTIONS.items()
    ]


# ==================== Cart ====================


@router.post("/sessions/{session_id}/cart/items")
async def add_product(request: AddProductRequest, terminal: Terminal = Depends(get_terminal)):
    """
    Tap a product.

    Unsized products are added straight to the cart; sized products open
    the modifier wizard at size selection.
    """
    line = terminal.add_product(request.product_id)
    return {
        "added": line.model_dump(mode="json", by_alias=True) if line else None,
        "wizard": terminal.wizard.to_dict(),
        "terminal": terminal.to_dict(),
    }


@router.put("/sessions/{session_id}/cart/items/{product_id}")
async def update_quantity(
    product_id: int,
    request: QuantityRequest,
    terminal: Terminal = Depends(get_terminal),
):
    """Set a line's quantity; zero removes the line"""
    terminal.set_quantity(product_id, request.quantity)
    return terminal.to_dict()


@router.delete("/sessions/{session_id}/cart/items/{product_id}")
async def remove_item(product_id: int, terminal: Terminal = Depends(get_terminal)):
    terminal.remove(product_id)
    return terminal.to_dict()


@router.delete("/sessions/{session_id}/cart")
async def clear_cart(terminal: Terminal = Depends(get_terminal)):
    terminal.clear()
    return terminal.to_dict()


@router.put("/sessions/{session_id}/discount")
async def set_discount(request: DiscountRequest, terminal: Terminal = Depends(get_terminal)):
    terminal.set_discount(request.discount_percent)
    return terminal.to_dict()


@router.get("/sessions/{session_id}/pricing")
async def get_pricing(terminal: Terminal = Depends(get_terminal)):
    return terminal.pricing().to_dict()


# ==================== Modifier wizard ====================


@router.post("/sessions/{session_id}/wizard/size")
async def select_size(request: SizeRequest, terminal: Terminal = Depends(get_terminal)):
    terminal.wizard.select_size(request.size_id)
    return terminal.wizard.to_dict()


@router.post("/sessions/{session_id}/wizard/size/confirm")
async def confirm_size(terminal: Terminal = Depends(get_terminal)):
    terminal.wizard.confirm_size()
    return terminal.wizard.to_dict()


@router.post("/sessions/{session_id}/wizard/sugar")
async def select_sugar(request: SugarRequest, terminal: Terminal = Depends(get_terminal)):
    terminal.wizard.select_sugar(request.sugar_level)
    return terminal.wizard.to_dict()


@router.post("/sessions/{session_id}/wizard/confirm")
async def confirm_selection(terminal: Terminal = Depends(get_terminal)):
    """Add the configured line to the cart"""
    line = terminal.confirm_selection()
    return {
        "added": line.model_dump(mode="json", by_alias=True),
        "terminal": terminal.to_dict(),
    }


@router.post("/sessions/{session_id}/wizard/cancel")
async def cancel_selection(terminal: Terminal = Depends(get_terminal)):
    terminal.wizard.cancel()
    return terminal.wizard.to_dict()
