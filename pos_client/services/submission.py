"""
Per-line Submission

A cart with N lines is sent to the backend as N independent requests,
issued concurrently. The batch fails if any line fails; lines the backend
already accepted are reported but never rolled back.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from ..models import BuyMenuItemRequest, CartLine, PaymentMethod, PurchaseResponse
from .errors import LineSubmissionError

logger = logging.getLogger(__name__)


def describe_error(error: BaseException) -> str:
    """Short operator-facing text for a failed request"""
    return getattr(error, "message", None) or str(error) or error.__class__.__name__


def build_line_request(
    line: CartLine,
    discount_percent: int,
    tax_percent: int,
    payment_method: PaymentMethod = PaymentMethod.CASH,
    include_sugar: bool = True,
    reference_id: Optional[str] = None,
) -> BuyMenuItemRequest:
    return BuyMenuItemRequest(
        menu_item_id=line.product_id,
        menu_item_size_id=line.selected_size_id,
        size=line.selected_size,
        sugar_level=line.sugar_level if include_sugar else None,
        quantity=line.quantity,
        discount_percent=discount_percent,
        tax=tax_percent,
        payment_method=payment_method,
        reference_id=reference_id,
    )


async def submit_lines(
    lines: list[CartLine],
    send: Callable[[CartLine], Awaitable[Any]],
    action: str,
) -> list[Any]:
    """
    Send every line concurrently and wait for all of them to settle.

    Returns the per-line responses in cart order, or raises
    ``LineSubmissionError`` naming the first failing line.
    """
    results = await asyncio.gather(
        *(send(line) for line in lines),
        return_exceptions=True,
    )

    sent: list[CartLine] = []
    responses: list[Any] = []
    failures: list[tuple[CartLine, BaseException]] = []

    for line, result in zip(lines, results):
        if isinstance(result, BaseException):
            logger.error(f"{action} failed for {line.name}: {describe_error(result)}")
            failures.append((line, result))
        else:
            sent.append(line)
            responses.append(result)

    if failures:
        line, error = failures[0]
        if sent:
            logger.warning(
                f"{action} partially applied; accepted lines not rolled back: "
                f"{', '.join(l.name for l in sent)}"
            )
        raise LineSubmissionError(
            f"{action} failed for {line.name}: {describe_error(error)}",
            product_name=line.name,
            sent=sent,
            failures=failures,
        )

    return responses


async def submit_purchase(
    client,
    lines: list[CartLine],
    discount_percent: int,
    tax_percent: int,
    payment_method: PaymentMethod,
) -> list[PurchaseResponse]:
    """Submit every cart line as a completed purchase"""

    async def send(line: CartLine) -> PurchaseResponse:
        return await client.buy(
            build_line_request(line, discount_percent, tax_percent, payment_method)
        )

    responses = await submit_lines(lines, send, "Purchase")
    for response in responses:
        if response.message:
            logger.info(f"Receipt: {response.message}")
    return responses
