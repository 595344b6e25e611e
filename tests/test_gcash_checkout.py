"""GCash checkout tests"""

import asyncio
import warnings
from datetime import datetime
from decimal import Decimal

import pytest

from pos_client.core.session import CheckoutKind, ResumeMarker
from pos_client.models import (
    ManualCompletionResponse,
    PaymentStatus,
    PaymentStatusResponse,
    PendingPayment,
)
from pos_client.services.backend_client import BackendError
from pos_client.services.errors import (
    CheckoutInProgressError,
    EmptyCartError,
    InvalidTransitionError,
    PaymentIntentError,
)
from pos_client.services import gcash_checkout
from pos_client.services.gcash_checkout import GCashCheckoutFlow, GCashState

from conftest import make_line

POLL = 0.01


def status(value: PaymentStatus, completed: bool = False) -> PaymentStatusResponse:
    return PaymentStatusResponse(reference_id="GC-TEST0001", status=value, completed=completed)


@pytest.fixture
async def gcash(backend, session, pending_store):
    flow = GCashCheckoutFlow(backend, session, pending_store, poll_interval=POLL)
    yield flow
    await flow.aclose()


@pytest.fixture
def cart(session):
    session.cart.add(make_line(1, "Caramel Macchiato", "150.00", category="Coffee"))
    session.cart.add(make_line(4, "Butter Croissant", "85.00", category="Pastry"))
    session.set_discount(20)
    return session


async def settle(flow: GCashCheckoutFlow) -> GCashState:
    return await asyncio.wait_for(flow.wait(), timeout=2)


@pytest.mark.anyio
async def test_start_opens_session_and_snapshots_cart(gcash, backend, session, pending_store, cart):
    payment = await gcash.start()

    assert gcash.state == GCashState.AWAITING_AUTHORIZATION
    assert payment.reference_id == "GC-TEST0001"
    assert payment.qr_image.startswith("data:image")
    assert session.guard.active == CheckoutKind.GCASH

    intent = backend.payloads("create_payment_intent")[0]
    assert intent.amount == gcash.pricing.grand_total == Decimal("216.20")

    snapshot = pending_store.get("GC-TEST0001")
    assert snapshot.discount_percent == 20
    assert [line.product_id for line in snapshot.cart_lines] == [1, 4]
    assert backend.payloads("save_pending_payment")[0].reference_id == "GC-TEST0001"


@pytest.mark.anyio
async def test_webhook_completion_is_detected_by_polling(gcash, backend, session, pending_store, cart):
    backend.statuses = [status(PaymentStatus.PENDING), status(PaymentStatus.COMPLETED, completed=True)]

    await gcash.start()
    assert await settle(gcash) == GCashState.COMPLETED

    assert gcash.state == GCashState.COMPLETED
    assert gcash.completed_by == "webhook"
    assert backend.count("complete_payment") == 0
    assert session.cart.is_empty
    assert session.discount_percent == 0
    assert not session.guard.busy
    assert pending_store.get("GC-TEST0001") is None
    assert gcash.payment is None


@pytest.mark.anyio
async def test_authorized_payment_is_completed_manually(gcash, backend, session, cart):
    backend.default_status = status(PaymentStatus.AUTHORIZED)

    await gcash.start()
    await settle(gcash)

    assert gcash.completed_by == "poll"
    assert backend.count("complete_payment") == 1
    assert session.cart.is_empty


@pytest.mark.anyio
async def test_unsuccessful_manual_completion_keeps_polling(gcash, backend, cart):
    backend.default_status = status(PaymentStatus.CHARGEABLE)
    backend.completions = [
        ManualCompletionResponse(success=False, message="Payment is pending"),
        BackendError("HTTP error! status: 500", 500),
    ]

    await gcash.start()
    await settle(gcash)

    assert backend.count("complete_payment") == 3
    assert gcash.state == GCashState.COMPLETED


@pytest.mark.anyio
async def test_poll_errors_are_swallowed(gcash, backend, cart):
    backend.statuses = [
        BackendError("Network error. Please check your connection."),
        BackendError("HTTP error! status: 503", 503),
        status(PaymentStatus.COMPLETED, completed=True),
    ]

    await gcash.start()
    assert await settle(gcash) == GCashState.COMPLETED
    assert backend.count("get_payment_status") == 3


@pytest.mark.anyio
async def test_polls_never_overlap(gcash, backend, cart):
    backend.status_delay = POLL * 3
    backend.statuses = [status(PaymentStatus.PENDING)] * 3 + [
        status(PaymentStatus.COMPLETED, completed=True)
    ]

    await gcash.start()
    await settle(gcash)

    assert backend.max_status_in_flight == 1


@pytest.mark.anyio
async def test_provider_failure_is_advisory(gcash, backend, session, pending_store, cart):
    backend.statuses = [status(PaymentStatus.EXPIRED)]

    await gcash.start()
    while backend.count("get_payment_status") < 3:
        await asyncio.sleep(POLL)

    assert gcash.state == GCashState.AWAITING_AUTHORIZATION
    assert "expired" in gcash.advisory
    assert session.guard.active == CheckoutKind.GCASH

    assert gcash.cancel()
    assert gcash.state == GCashState.CANCELLED
    assert len(session.cart) == 2
    assert session.discount_percent == 20
    assert not session.guard.busy
    assert pending_store.get("GC-TEST0001") is None


@pytest.mark.anyio
async def test_cancel_stops_polling(gcash, backend, cart):
    await gcash.start()
    await asyncio.sleep(POLL * 3)

    gcash.cancel()
    polls = backend.count("get_payment_status")
    await asyncio.sleep(POLL * 5)

    assert backend.count("get_payment_status") == polls
    assert not gcash.cancel()


@pytest.mark.anyio
async def test_operator_and_poller_converge_once(gcash, backend, session, cart):
    backend.default_status = status(PaymentStatus.AUTHORIZED)
    backend.completion_delay = POLL * 2

    resets = []
    original_reset = session.reset_after_checkout

    def counting_reset():
        resets.append(True)
        original_reset()

    session.reset_after_checkout = counting_reset

    await gcash.start()
    # Let the poller's completion call get in flight first
    while backend.count("complete_payment") == 0:
        await asyncio.sleep(POLL / 2)

    assert await gcash.force_complete()
    await settle(gcash)

    assert backend.count("complete_payment") >= 2
    assert len(resets) == 1
    assert gcash.state == GCashState.COMPLETED
    assert await gcash.force_complete()


@pytest.mark.anyio
async def test_force_complete_before_authorization(gcash, backend, cart):
    backend.completions = [ManualCompletionResponse(success=False, message="Payment is pending")]

    await gcash.start()
    assert not await gcash.force_complete()
    assert gcash.state == GCashState.AWAITING_AUTHORIZATION


@pytest.mark.anyio
async def test_intent_failure_returns_to_idle(gcash, backend, session, pending_store, cart):
    backend.intent_error = BackendError("GCash is unavailable", 502)

    with pytest.raises(PaymentIntentError, match="GCash is unavailable"):
        await gcash.start()

    assert gcash.state == GCashState.IDLE
    assert gcash.error == "GCash is unavailable"
    assert len(session.cart) == 2
    assert not session.guard.busy
    assert pending_store.list() == []


@pytest.mark.anyio
async def test_code_render_failure_drops_snapshot(gcash, backend, session, pending_store, cart):
    backend.qr_error = BackendError("HTTP error! status: 500", 500)

    with pytest.raises(PaymentIntentError):
        await gcash.start()

    assert pending_store.get("GC-TEST0001") is None
    assert gcash.state == GCashState.IDLE
    assert not session.guard.busy


@pytest.mark.anyio
async def test_start_guards(gcash, session, cart):
    await gcash.start()
    with pytest.raises(InvalidTransitionError):
        await gcash.start()


@pytest.mark.anyio
async def test_start_requires_items(gcash):
    with pytest.raises(EmptyCartError):
        await gcash.start()


@pytest.mark.anyio
async def test_start_refused_during_cash_checkout(gcash, backend, session, cart):
    session.guard.acquire(CheckoutKind.CASH)
    with pytest.raises(CheckoutInProgressError):
        await gcash.start()
    assert backend.count("create_payment_intent") == 0


@pytest.mark.anyio
async def test_restore_reopens_pending_payment(gcash, backend, session, pending_store):
    pending_store.save(
        PendingPayment(
            reference_id="GC-RESTORED",
            checkout_url="https://pay.test/checkout/GC-RESTORED",
            cart_lines=[make_line(3, "Matcha Latte", "160.00", quantity=2)],
            discount_percent=10,
            tax_percent=12,
            grand_total=Decimal("326.40"),
            timestamp=datetime.utcnow(),
        )
    )
    backend.statuses = [status(PaymentStatus.COMPLETED, completed=True)]

    payment = await gcash.restore("GC-RESTORED")

    assert payment.reference_id == "GC-RESTORED"
    assert session.cart.get(3).quantity == 2
    assert gcash.pricing.grand_total == Decimal("326.40")

    await settle(gcash)
    assert backend.payloads("get_payment_status") == ["GC-RESTORED"]
    assert pending_store.get("GC-RESTORED") is None
    assert session.cart.is_empty


@pytest.mark.anyio
async def test_webhook_completion_during_operator_completion(gcash, backend, session, cart):
    backend.completion_delay = POLL * 4
    backend.statuses = [status(PaymentStatus.PENDING)]
    backend.default_status = status(PaymentStatus.COMPLETED, completed=True)

    resets = []
    original_reset = session.reset_after_checkout
    session.reset_after_checkout = lambda: (resets.append(True), original_reset())

    await gcash.start()
    # The poller sees the webhook's completion while this call is in flight
    assert await gcash.force_complete()

    assert gcash.completed_by == "webhook"
    assert len(resets) == 1
    assert session.cart.is_empty
    assert gcash.state == GCashState.COMPLETED


@pytest.mark.anyio
async def test_start_refused_for_resumed_hold(gcash, backend, session, pending_store):
    session.cart.add(make_line(4, "Butter Croissant", "85.00"))
    session.resume_marker = ResumeMarker(hold_id=100, menu_item_name="Butter Croissant")

    with pytest.raises(InvalidTransitionError):
        await gcash.start()
    assert backend.count("create_payment_intent") == 0
    assert session.guard.active == CheckoutKind.NONE
    assert pending_store.list() == []


@pytest.mark.anyio
async def test_unexpected_poll_failure_is_logged(gcash, backend, cart, caplog):
    backend.statuses = [RuntimeError("status decoder crashed")]
    await gcash.start()

    await asyncio.wait([gcash._poll_task], timeout=2)
    await asyncio.sleep(0)

    assert "Complete or cancel" in gcash.advisory
    assert any("stopped" in record.message for record in caplog.records)
    assert gcash.state == GCashState.AWAITING_AUTHORIZATION
    assert await gcash.force_complete()


def test_module_compiles_without_warnings():
    path = gcash_checkout.__file__
    with open(path) as f:
        source = f.read()
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        compile(source, path, "exec")
