"""Purchase and hold API routes for the mock backend"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException

from ..database.menu import menu_db
from ..database.sales import sales_db
from ..models.menu import MenuItem
from ..models.sales import BuyMenuItemDTO, SaleItem, SaleStatus
from ..security.auth import CashierClaims, require_cashier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/buy", tags=["Buy"])


def _resolve_item(request: BuyMenuItemDTO) -> tuple[MenuItem, SaleItem]:
    item = menu_db.get_item(request.menu_item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Menu item not found")

    unit_price = item.price_for(request.menu_item_size_id)
    if unit_price is None:
        raise HTTPException(status_code=404, detail="Menu item size not found")

    return item, SaleItem(
        menu_item_id=item.id,
        menu_item_name=item.item_name,
        size=request.size,
        sugar_level=request.sugar_level,
        quantity=request.quantity,
        unit_price=unit_price,
    )


@router.post("")
async def buy_menu_item(
    request: BuyMenuItemDTO,
    cashier: CashierClaims = Depends(require_cashier),
):
    """Sell one menu item line and deduct its stock"""
    item, sale_item = _resolve_item(request)

    if not menu_db.update_stock(item.id, -request.quantity):
        raise HTTPException(status_code=400, detail=f"Not enough stock for {item.item_name}")

    sale = sales_db.record(
        cashier_id=cashier.cashier_id,
        branch_id=cashier.branch_id,
        item=sale_item,
        tax_percent=request.tax,
        discount_percent=request.discount_percent,
        payment_method=request.payment_method or "Cash",
        status=SaleStatus.COMPLETED,
        reference_id=request.reference_id,
    )
    logger.info(f"Sale #{sale.id}: {request.quantity} x {item.item_name} = {sale.total}")

    return {"message": sale.receipt_message(), "receiptNumber": sale.receipt_number}


@router.post("/hold")
async def hold_transaction(
    request: BuyMenuItemDTO,
    cashier: CashierClaims = Depends(require_cashier),
):
    """Store a held line; stock is deducted when it is resumed"""
    item, sale_item = _resolve_item(request)

    sale = sales_db.record(
        cashier_id=cashier.cashier_id,
        branch_id=cashier.branch_id,
        item=sale_item,
        tax_percent=request.tax,
        discount_percent=request.discount_percent,
        payment_method=request.payment_method or "Cash",
        status=SaleStatus.HOLD,
    )
    logger.info(f"Hold #{sale.id}: {request.quantity} x {item.item_name}")

    return {"id": sale.id, "message": f"Transaction held (Hold #{sale.id})"}


@router.post("/hold/{sale_id}/resume")
async def resume_hold(sale_id: int, cashier: CashierClaims = Depends(require_cashier)):
    """Finalize a held transaction"""
    sale = sales_db.get(sale_id)
    if not sale:
        raise HTTPException(status_code=404, detail="Hold not found")
    if sale.status != SaleStatus.HOLD:
        raise HTTPException(status_code=409, detail="Already finalized")

    for item in sale.items:
        if not menu_db.has_stock(item.menu_item_id, item.quantity):
            raise HTTPException(
                status_code=400,
                detail=f"Not enough stock for {item.menu_item_name}",
            )
    for item in sale.items:
        menu_db.update_stock(item.menu_item_id, -item.quantity)

    sales_db.update_status(sale_id, SaleStatus.COMPLETED)
    return {"message": f"Hold transaction #{sale.id} finalized successfully."}


@router.post("/hold/{sale_id}/cancel")
async def cancel_hold(sale_id: int, cashier: CashierClaims = Depends(require_cashier)):
    sale = sales_db.get(sale_id)
    if not sale:
        raise HTTPException(status_code=404, detail="Hold not found")
    if sale.status == SaleStatus.COMPLETED:
        raise HTTPException(status_code=409, detail="Already finalized")

    sales_db.update_status(sale_id, SaleStatus.CANCELED)
    return {"message": f"Hold transaction #{sale.id} canceled."}


@router.get("/transactions")
async def list_transactions(
    status: Optional[SaleStatus] = None,
    reference_id: Optional[str] = None,
    cashier: CashierClaims = Depends(require_cashier),
):
    """List recorded sales, for reconciliation"""
    return [
        s.model_dump(mode="json", by_alias=True)
        for s in sales_db.list(status=status, reference_id=reference_id)
    ]
