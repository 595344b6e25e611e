"""Shared fixtures and an in-memory backend double"""

import asyncio
from decimal import Decimal

import pytest

from pos_client.core.session import SessionManager
from pos_client.models import (
    CartLine,
    HoldResponse,
    ManualCompletionResponse,
    PaymentIntent,
    PaymentStatus,
    PaymentStatusResponse,
    Product,
    PurchaseResponse,
    SizeOption,
)
from pos_client.services.backend_client import BackendError
from pos_client.storage import HoldMirror, LocalStore, PendingPaymentStore


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeBackend:
    """
    Records every call and answers from scripted responses.

    ``statuses`` and ``completions`` are consumed in order; an exception
    in either list is raised instead of returned.
    """

    def __init__(self):
        self.token = None
        self.menu: list[Product] = []
        self.calls: list[tuple[str, object]] = []

        self.failing_items: dict[int, str] = {}
        self.next_hold_id = 100
        self.resume_error = None

        self.reference_id = "GC-TEST0001"
        self.intent_error = None
        self.qr_error = None
        self.pending_error = None

        self.statuses: list = []
        self.default_status = PaymentStatusResponse(status=PaymentStatus.PENDING)
        self.status_delay = 0.0
        self.completions: list = []
        self.completion_delay = 0.0

        self._status_in_flight = 0
        self.max_status_in_flight = 0

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    def payloads(self, name: str) -> list:
        return [payload for call, payload in self.calls if call == name]

    async def fetch_menu(self, branch_id=None):
        self.calls.append(("fetch_menu", branch_id))
        return self.menu

    async def buy(self, request):
        self.calls.append(("buy", request))
        await asyncio.sleep(0)
        if request.menu_item_id in self.failing_items:
            raise BackendError(self.failing_items[request.menu_item_id], 400)
        return PurchaseResponse(message=f"Purchase successful (Receipt #{self.count('buy'):06d})")

    async def hold(self, request):
        self.calls.append(("hold", request))
        await asyncio.sleep(0)
        if request.menu_item_id in self.failing_items:
            raise BackendError(self.failing_items[request.menu_item_id], 400)
        hold_id = self.next_hold_id
        self.next_hold_id += 1
        return HoldResponse(id=hold_id, message=f"Transaction held (Hold #{hold_id})")

    async def resume_hold(self, hold_id):
        self.calls.append(("resume_hold", hold_id))
        if self.resume_error:
            raise self.resume_error
        return f"Hold transaction #{hold_id} finalized successfully."

    async def cancel_hold(self, hold_id):
        self.calls.append(("cancel_hold", hold_id))
        return f"Hold transaction #{hold_id} canceled."

    async def create_payment_intent(self, request):
        self.calls.append(("create_payment_intent", request))
        if self.intent_error:
            raise self.intent_error
        return PaymentIntent(
            reference_id=self.reference_id,
            checkout_url=f"https://pay.test/checkout/{self.reference_id}",
        )

    async def get_qr_code(self, checkout_url):
        self.calls.append(("get_qr_code", checkout_url))
        if self.qr_error:
            raise self.qr_error
        return "data:image/png;base64,iVBORw0KGgo="

    async def save_pending_payment(self, snapshot):
        self.calls.append(("save_pending_payment", snapshot))
        if self.pending_error:
            raise self.pending_error

    async def get_payment_status(self, reference_id):
        self.calls.append(("get_payment_status", reference_id))
        self._status_in_flight += 1
        self.max_status_in_flight = max(self.max_status_in_flight, self._status_in_flight)
        try:
            if self.status_delay:
                await asyncio.sleep(self.status_delay)
            result = self.statuses.pop(0) if self.statuses else self.default_status
        finally:
            self._status_in_flight -= 1
        if isinstance(result, Exception):
            raise result
        return result

    async def complete_payment(self, reference_id):
        self.calls.append(("complete_payment", reference_id))
        if self.completion_delay:
            await asyncio.sleep(self.completion_delay)
        result = self.completions.pop(0) if self.completions else ManualCompletionResponse(success=True)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def session():
    return SessionManager().create_session()


@pytest.fixture
def store():
    return LocalStore()


@pytest.fixture
def mirror(store):
    return HoldMirror(store)


@pytest.fixture
def pending_store(store):
    return PendingPaymentStore(store)


@pytest.fixture
def latte():
    return Product(
        id=1,
        name="Caramel Macchiato",
        category="Coffee",
        price=Decimal("150.00"),
        sizes=[
            SizeOption(id=1, label="Small", price=Decimal("120.00")),
            SizeOption(id=2, label="Medium", price=Decimal("150.00")),
            SizeOption(id=3, label="Large", price=Decimal("180.00")),
        ],
    )


@pytest.fixture
def americano():
    """Sized product whose first size is sold out"""
    return Product(
        id=2,
        name="Iced Americano",
        category="Coffee",
        price=Decimal("110.00"),
        sizes=[
            SizeOption(id=4, label="Small", price=Decimal("95.00"), available=False),
            SizeOption(id=5, label="Medium", price=Decimal("110.00")),
        ],
    )


@pytest.fixture
def croissant():
    return Product(id=4, name="Butter Croissant", category="Pastry", price=Decimal("85.00"))


@pytest.fixture
def cheesecake():
    return Product(
        id=5,
        name="Blueberry Cheesecake",
        category="Pastry",
        price=Decimal("145.00"),
        is_available="Out of Stock",
    )


def make_line(product_id: int, name: str, unit_price: str, quantity: int = 1, **extra) -> CartLine:
    return CartLine(
        product_id=product_id,
        name=name,
        unit_price=Decimal(unit_price),
        quantity=quantity,
        **extra,
    )
