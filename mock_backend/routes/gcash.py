"""GCash payment API routes for the mock backend"""

import base64
import logging
from datetime import datetime
from html import escape
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..config import settings
from ..database.payments import payment_db
from ..models.payment import (
    AUTHORIZED_STATUSES,
    PaymentIntentRequest,
    PaymentRecord,
    PaymentStatus,
    PendingPayment,
    QRCodeRequest,
    WebhookEvent,
)
from ..security.auth import CashierClaims, require_cashier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/gcash", tags=["GCash"])


class SimulateRequest(BaseModel):
    status: PaymentStatus


def _get_payment(reference_id: str) -> PaymentRecord:
    payment = payment_db.get(reference_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


def _placeholder_code(checkout_url: str) -> str:
    """SVG stand-in for a QR image, as a data URL"""
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="256" height="256">'
        '<rect width="256" height="256" fill="#fff" stroke="#000"/>'
        f'<text x="8" y="128" font-size="8">{escape(checkout_url)}</text>'
        "</svg>"
    )
    encoded = base64.b64encode(svg.encode()).decode()
    return f"data:image/svg+xml;base64,{encoded}"


@router.post("/intent")
async def create_payment_intent(
    request: PaymentIntentRequest,
    cashier: CashierClaims = Depends(require_cashier),
):
    """Create a payment intent and its checkout link"""
    payment = payment_db.create_intent(request, settings.qr_base_url)
    logger.info(f"Payment intent {payment.reference_id} for {payment.amount} {payment.currency}")
    return {"referenceId": payment.reference_id, "checkoutUrl": payment.checkout_url}


@router.post("/qr")
async def render_qr_code(
    request: QRCodeRequest,
    cashier: CashierClaims = Depends(require_cashier),
):
    return {"qrImage": _placeholder_code(request.checkout_url)}


@router.get("/status/{reference_id}")
async def get_payment_status(
    reference_id: str,
    cashier: CashierClaims = Depends(require_cashier),
):
    payment = _get_payment(reference_id)

    if (
        settings.auto_authorize_after is not None
        and payment.status == PaymentStatus.PENDING
        and (datetime.utcnow() - payment.created_at).total_seconds() >= settings.auto_authorize_after
    ):
        payment_db.set_status(reference_id, PaymentStatus.AUTHORIZED)

    return {
        "referenceId": payment.reference_id,
        "completed": payment.completed,
        "status": payment.status.value,
    }


@router.post("/complete/{reference_id}")
async def complete_payment(
    reference_id: str,
    cashier: CashierClaims = Depends(require_cashier),
):
    """
    Manually complete an authorized payment.

    Safe to call repeatedly and concurrently with the webhook: the sale
    is created once.
    """
    payment = _get_payment(reference_id)

    if payment.completed:
        return {"success": True, "message": "Payment already completed"}
    if payment.status not in AUTHORIZED_STATUSES:
        return {"success": False, "message": f"Payment is {payment.status.value}"}

    receipts = payment_db.materialize(reference_id)
    if receipts is None:
        return {"success": False, "message": "No pending order for this payment"}
    return {"success": True, "message": f"Payment completed ({len(receipts)} sale(s))"}


@router.post("/pending")
async def save_pending_payment(
    snapshot: PendingPayment,
    cashier: CashierClaims = Depends(require_cashier),
):
    """Store the cart snapshot the webhook will materialize"""
    _get_payment(snapshot.reference_id)
    payment_db.save_pending(snapshot, cashier)
    return {"message": "Pending payment saved"}


@router.post("/webhook")
async def payment_webhook(event: WebhookEvent):
    """Provider callback; an authorized payment becomes a sale"""
    payment = payment_db.set_status(event.reference_id, event.status)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")

    if event.status in AUTHORIZED_STATUSES or event.status == PaymentStatus.COMPLETED:
        payment_db.materialize(event.reference_id)

    logger.info(f"Webhook for {event.reference_id}: {event.status.value}")
    return {"received": True, "completed": payment.completed}


@router.post("/simulate/{reference_id}")
async def simulate_provider_status(reference_id: str, request: SimulateRequest):
    """Development helper: set the provider status without a webhook"""
    _get_payment(reference_id)
    payment = payment_db.set_status(reference_id, request.status)
    return {"referenceId": reference_id, "status": payment.status.value}
