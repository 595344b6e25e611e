"""Hold, cash and GCash checkout routes"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..services.terminal import Terminal
from .terminal import get_terminal

router = APIRouter(prefix="/api/terminal/sessions/{session_id}", tags=["Checkout"])


class TenderRequest(BaseModel):
    amount: Decimal


# ==================== Holds ====================


@router.post("/hold")
async def hold_cart(terminal: Terminal = Depends(get_terminal)):
    """Suspend every cart line as a held transaction"""
    holds = await terminal.holds.hold(terminal.session, terminal.tax_percent)
    return {
        "holds": [h.model_dump(mode="json", by_alias=True) for h in holds],
        "terminal": terminal.to_dict(),
    }


@router.get("/holds")
async def list_holds(
    search: Optional[str] = None,
    category: Optional[str] = None,
    terminal: Terminal = Depends(get_terminal),
):
    """List held transactions, filtered by text and category"""
    holds = terminal.holds.list_holds(search=search, category=category)
    return {
        "holds": [
            {**h.model_dump(mode="json", by_alias=True), "totalAmount": str(h.total_amount)}
            for h in holds
        ],
        "categories": terminal.holds.mirror.categories(),
    }


@router.post("/holds/{hold_id}/resume")
async def resume_hold(hold_id: int, terminal: Terminal = Depends(get_terminal)):
    """Reopen a held transaction into the (empty) cart"""
    terminal.holds.resume(terminal.session, hold_id)
    return terminal.to_dict()


@router.post("/holds/{hold_id}/cancel")
async def cancel_hold(hold_id: int, terminal: Terminal = Depends(get_terminal)):
    message = await terminal.holds.cancel(hold_id)
    return {"message": message}


# ==================== Cash ====================


@router.get("/cash")
async def get_cash(terminal: Terminal = Depends(get_terminal)):
    return terminal.cash.to_dict()


@router.post("/cash/begin")
async def begin_cash(terminal: Terminal = Depends(get_terminal)):
    terminal.cash.begin()
    return terminal.cash.to_dict()


@router.post("/cash/tender")
async def enter_tender(request: TenderRequest, terminal: Terminal = Depends(get_terminal)):
    """Record the tendered amount and show the change"""
    terminal.cash.enter_amount(request.amount)
    return terminal.cash.to_dict()


@router.post("/cash/confirm")
async def confirm_cash(terminal: Terminal = Depends(get_terminal)):
    change = await terminal.cash.confirm()
    return {
        "change": str(change),
        "cash": terminal.cash.to_dict(),
        "terminal": terminal.to_dict(),
    }


@router.post("/cash/cancel")
async def cancel_cash(terminal: Terminal = Depends(get_terminal)):
    terminal.cash.cancel()
    return terminal.cash.to_dict()


# ==================== GCash ====================


@router.get("/gcash")
async def get_gcash(terminal: Terminal = Depends(get_terminal)):
    """Current GCash session, including the scannable code while open"""
    return terminal.gcash.to_dict()


@router.post("/gcash/start")
async def start_gcash(terminal: Terminal = Depends(get_terminal)):
    await terminal.gcash.start()
    return terminal.gcash.to_dict()


@router.post("/gcash/complete")
async def force_complete_gcash(terminal: Terminal = Depends(get_terminal)):
    """Ask the backend to complete the payment now"""
    completed = await terminal.gcash.force_complete()
    return {"completed": completed, "gcash": terminal.gcash.to_dict()}


@router.post("/gcash/cancel")
async def cancel_gcash(terminal: Terminal = Depends(get_terminal)):
    """Close the session; the cart is kept for another attempt"""
    cancelled = terminal.gcash.cancel()
    return {"cancelled": cancelled, "gcash": terminal.gcash.to_dict()}


@router.get("/gcash/pending")
async def list_pending_payments(terminal: Terminal = Depends(get_terminal)):
    return [
        p.model_dump(mode="json", by_alias=True)
        for p in terminal.pending.list()
    ]


@router.post("/gcash/restore/{reference_id}")
async def restore_gcash(reference_id: str, terminal: Terminal = Depends(get_terminal)):
    """Reopen a pending payment left behind by a restart"""
    await terminal.gcash.restore(reference_id)
    return terminal.gcash.to_dict()
