"""Backend client tests against a mock transport"""

import json
from decimal import Decimal

import httpx
import pytest

from pos_client.models import PaymentIntentRequest, PaymentStatus
from pos_client.services.backend_client import (
    NETWORK_ERROR_MESSAGE,
    BackendClient,
    BackendError,
    PermissionDeniedError,
    SessionExpiredError,
)
from pos_client.services.submission import build_line_request

from conftest import make_line


def make_client(handler) -> BackendClient:
    return BackendClient(
        "http://backend.test/",
        token="token-123",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.anyio
async def test_fetch_menu_sends_bearer_and_branch():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["url"] = str(request.url)
        return httpx.Response(200, json=[
            {
                "id": 1,
                "itemName": "Caramel Macchiato",
                "category": "Coffee",
                "price": "150.00",
                "isAvailable": "Available",
                "sizes": [{"id": 1, "label": "Small", "price": "120.00", "available": True}],
            },
        ])

    client = make_client(handler)
    menu = await client.fetch_menu(branch_id=2)
    await client.close()

    assert seen["auth"] == "Bearer token-123"
    assert seen["url"] == "http://backend.test/api/menu?branchId=2"
    assert menu[0].name == "Caramel Macchiato"
    assert menu[0].sizes[0].price == Decimal("120.00")


@pytest.mark.anyio
async def test_buy_posts_camel_case_body():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"message": "Purchase successful (Receipt #000001)"})

    client = make_client(handler)
    response = await client.buy(build_line_request(make_line(4, "Butter Croissant", "85.00"), 0, 12))
    await client.close()

    assert bodies[0]["menuItemId"] == 4
    assert bodies[0]["paymentMethod"] == "Cash"
    assert "Receipt" in response.message


@pytest.mark.anyio
async def test_error_body_message_is_surfaced():
    client = make_client(lambda request: httpx.Response(400, json={"detail": "Not enough stock for Milk"}))

    with pytest.raises(BackendError) as exc_info:
        await client.resume_hold(3)
    await client.close()

    assert exc_info.value.message == "Not enough stock for Milk"
    assert exc_info.value.status_code == 400


@pytest.mark.anyio
async def test_error_without_body_uses_status_text():
    client = make_client(lambda request: httpx.Response(500, text="oops"))

    with pytest.raises(BackendError, match="HTTP error! status: 500"):
        await client.cancel_hold(3)
    await client.close()


@pytest.mark.anyio
@pytest.mark.parametrize("status_code, error_type", [
    (401, SessionExpiredError),
    (403, PermissionDeniedError),
])
async def test_auth_failures(status_code, error_type):
    client = make_client(lambda request: httpx.Response(status_code))

    with pytest.raises(error_type):
        await client.get_payment_status("GC-1")
    await client.close()


@pytest.mark.anyio
async def test_network_failure_is_wrapped():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    with pytest.raises(BackendError, match=NETWORK_ERROR_MESSAGE):
        await client.complete_payment("GC-1")
    await client.close()


@pytest.mark.anyio
async def test_gcash_endpoints():
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/api/gcash/intent":
            body = json.loads(request.content)
            assert body == {"amount": "112.00", "currency": "PHP"}
            return httpx.Response(200, json={"referenceId": "GC-1", "checkoutUrl": "https://pay.test/GC-1"})
        if path == "/api/gcash/qr":
            assert json.loads(request.content) == {"checkoutUrl": "https://pay.test/GC-1"}
            return httpx.Response(200, json={"qrImage": "data:image/png;base64,AA=="})
        if path == "/api/gcash/status/GC-1":
            return httpx.Response(200, json={"referenceId": "GC-1", "completed": False, "status": "chargeable"})
        return httpx.Response(404)

    client = make_client(handler)
    intent = await client.create_payment_intent(PaymentIntentRequest(amount=Decimal("112.00")))
    qr_image = await client.get_qr_code(intent.checkout_url)
    status = await client.get_payment_status(intent.reference_id)
    await client.close()

    assert intent.reference_id == "GC-1"
    assert qr_image.startswith("data:image/png")
    assert status.status == PaymentStatus.CHARGEABLE
    assert not status.completed
