"""End-to-end tests: backend client and checkout flows against the mock backend"""

import asyncio
from datetime import datetime, timedelta
from decimal import Decimal

import httpx
import pytest

from mock_backend.database import menu_db, payment_db, sales_db
from mock_backend.main import app
from mock_backend.security.auth import issue_token
from pos_client.core.session import SessionManager
from pos_client.models import PaymentIntentRequest, PendingPayment
from pos_client.services.backend_client import BackendClient, BackendError, SessionExpiredError
from pos_client.services.cash_checkout import CashCheckoutFlow
from pos_client.services.errors import LineSubmissionError
from pos_client.services.gcash_checkout import GCashCheckoutFlow, GCashState
from pos_client.services.hold import HoldOrchestrator
from pos_client.services.modifier_flow import ModifierSelectionFlow
from pos_client.storage import HoldMirror, LocalStore, PendingPaymentStore

from conftest import make_line

BASE_URL = "http://testserver"


@pytest.fixture(autouse=True)
def reset_databases():
    menu_db.reset()
    sales_db.reset()
    payment_db.reset()


@pytest.fixture
async def client():
    client = BackendClient(
        BASE_URL,
        token=issue_token("cashier-01", 1),
        transport=httpx.ASGITransport(app=app),
    )
    yield client
    await client.close()


@pytest.fixture
async def provider():
    """Unauthenticated client standing in for the payment provider"""
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=BASE_URL) as http:
        yield http


@pytest.fixture
def session():
    return SessionManager().create_session()


@pytest.mark.anyio
async def test_menu_is_scoped_to_token_branch(client):
    menu = await client.fetch_menu()

    assert {p.name for p in menu} == {
        "Caramel Macchiato", "Iced Americano", "Matcha Latte",
        "Butter Croissant", "Blueberry Cheesecake",
    }
    cheesecake = next(p for p in menu if p.id == 5)
    assert cheesecake.out_of_stock

    other_branch = await client.fetch_menu(branch_id=2)
    assert {p.name for p in other_branch} == {"Spanish Latte", "Ensaymada"}


@pytest.mark.anyio
async def test_requests_without_valid_token_are_rejected():
    client = BackendClient(BASE_URL, token="not-a-jwt", transport=httpx.ASGITransport(app=app))
    with pytest.raises(SessionExpiredError):
        await client.fetch_menu()

    client.token = issue_token("cashier-01", 1, expires_in=timedelta(seconds=-1))
    with pytest.raises(SessionExpiredError):
        await client.fetch_menu()
    await client.close()


@pytest.mark.anyio
async def test_cash_sale_books_sized_line(client, session):
    menu = await client.fetch_menu()
    wizard = ModifierSelectionFlow(session.cart)
    wizard.open(next(p for p in menu if p.id == 1))
    wizard.select_size(3)
    wizard.confirm_size()
    wizard.confirm()
    wizard.open(next(p for p in menu if p.id == 4))

    cash = CashCheckoutFlow(client, session)
    pricing = cash.begin()
    assert pricing.grand_total == Decimal("296.80")
    cash.enter_amount("300")
    assert await cash.confirm() == Decimal("3.20")

    sales = sales_db.list()
    assert len(sales) == 2
    assert sum(s.total for s in sales) == pricing.grand_total
    assert menu_db.get_item(1).stock == 49
    assert all(s.cashier_id == "cashier-01" and s.branch_id == 1 for s in sales)


@pytest.mark.anyio
async def test_stock_shortage_names_the_item(client, session):
    menu = await client.fetch_menu()
    croissant = next(p for p in menu if p.id == 4)
    menu_db.update_stock(4, -20)

    session.cart.add_product(croissant)
    cash = CashCheckoutFlow(client, session)
    cash.begin()
    cash.enter_amount("500")

    with pytest.raises(LineSubmissionError, match="Not enough stock for Butter Croissant"):
        await cash.confirm()
    assert len(session.cart) == 1


@pytest.mark.anyio
async def test_hold_then_resume_finalizes_once(client, session):
    menu = await client.fetch_menu()
    session.cart.add_product(next(p for p in menu if p.id == 4))
    holds = HoldOrchestrator(client, HoldMirror(LocalStore()), completion_delay=0)

    held = await holds.hold(session)
    assert sales_db.get(held[0].id).status.value == "Hold"
    assert menu_db.get_item(4).stock == 20

    holds.resume(session, held[0].id)
    cash = CashCheckoutFlow(client, session)
    cash.begin()
    cash.enter_amount("100")
    await cash.confirm()

    assert sales_db.get(held[0].id).status.value == "Completed"
    assert menu_db.get_item(4).stock == 19
    assert len(sales_db.list()) == 1

    with pytest.raises(BackendError, match="Already finalized"):
        await client.resume_hold(held[0].id)


@pytest.mark.anyio
async def test_cancel_hold(client, session):
    menu = await client.fetch_menu()
    session.cart.add_product(next(p for p in menu if p.id == 4))
    holds = HoldOrchestrator(client, HoldMirror(LocalStore()), completion_delay=0)
    held = await holds.hold(session)

    await holds.cancel(held[0].id)

    assert sales_db.get(held[0].id).status.value == "Canceled"


@pytest.mark.anyio
async def test_gcash_webhook_and_manual_completion_create_sales_once(client, provider, session):
    menu = await client.fetch_menu()
    session.cart.add_product(next(p for p in menu if p.id == 4))
    session.cart.add_product(next(p for p in menu if p.id == 4))
    gcash = GCashCheckoutFlow(client, session, PendingPaymentStore(LocalStore()), poll_interval=0.01)

    payment = await gcash.start()
    reference_id = payment.reference_id

    response = await provider.post(
        "/api/gcash/webhook",
        json={"referenceId": reference_id, "status": "authorized"},
    )
    assert response.json()["completed"] is True

    assert await asyncio.wait_for(gcash.wait(), timeout=2) == GCashState.COMPLETED
    assert gcash.completed_by == "webhook"

    # Late manual completion is a no-op on the backend
    result = await client.complete_payment(reference_id)
    assert result.success

    sales = sales_db.list(reference_id=reference_id)
    assert len(sales) == 1
    assert sales[0].payment_method == "GCash"
    assert sales[0].items[0].quantity == 2
    assert menu_db.get_item(4).stock == 18


@pytest.mark.anyio
async def test_gcash_missed_webhook_is_completed_by_polling(client, provider, session):
    menu = await client.fetch_menu()
    session.cart.add_product(next(p for p in menu if p.id == 4))
    gcash = GCashCheckoutFlow(client, session, PendingPaymentStore(LocalStore()), poll_interval=0.01)
    payment = await gcash.start()

    status = await client.get_payment_status(payment.reference_id)
    assert status.status.value == "pending"
    assert not (await client.complete_payment(payment.reference_id)).success

    await provider.post(f"/api/gcash/simulate/{payment.reference_id}", json={"status": "chargeable"})

    assert await asyncio.wait_for(gcash.wait(), timeout=2) == GCashState.COMPLETED
    assert gcash.completed_by in ("poll", "webhook")
    assert len(sales_db.list(reference_id=payment.reference_id)) == 1
    assert session.cart.is_empty


@pytest.mark.anyio
async def test_webhook_before_pending_record_leaves_payment_authorized(client, provider):
    menu = await client.fetch_menu()
    croissant = next(p for p in menu if p.id == 4)
    intent = await client.create_payment_intent(PaymentIntentRequest(amount=Decimal("95.20")))

    response = await provider.post(
        "/api/gcash/webhook",
        json={"referenceId": intent.reference_id, "status": "completed"},
    )
    assert response.json()["completed"] is False

    status = await client.get_payment_status(intent.reference_id)
    assert not status.completed
    assert status.status.value == "authorized"

    await client.save_pending_payment(
        PendingPayment(
            reference_id=intent.reference_id,
            checkout_url=intent.checkout_url,
            cart_lines=[make_line(4, croissant.name, "85.00")],
            grand_total=Decimal("95.20"),
            timestamp=datetime.utcnow(),
        )
    )

    assert (await client.complete_payment(intent.reference_id)).success
    assert (await client.get_payment_status(intent.reference_id)).completed
    assert len(sales_db.list(reference_id=intent.reference_id)) == 1
