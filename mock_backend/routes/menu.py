"""Menu API routes for the mock backend"""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from ..database.menu import menu_db
from ..security.auth import CashierClaims, require_cashier

router = APIRouter(prefix="/api/menu", tags=["Menu"])


@router.get("")
async def list_menu(
    branch_id: Optional[int] = Query(None, alias="branchId", description="Branch to list"),
    cashier: CashierClaims = Depends(require_cashier),
):
    """
    List menu items with their sizes.

    Defaults to the branch named in the operator's token.
    """
    if branch_id is None:
        branch_id = cashier.branch_id
    return [item.to_api() for item in menu_db.list_items(branch_id)]
