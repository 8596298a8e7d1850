"""Wallet intent orchestration, focus scopes and return URLs."""
from __future__ import annotations

import asyncio

import pytest
from kungfu import Error, Ok

from cartpay.domain import IntentStatus, PaymentIntent
from cartpay.payment import (
    NO_REDIRECT_MESSAGE,
    STILL_PENDING_MESSAGE,
    FocusScope,
    PaymentErrorKind,
    PaymentIntentOrchestrator,
    ReturnKind,
    ScopeReleasedError,
    classify_return_url,
    pick_redirect_target,
)
from cartpay.ports import IntentRequest, ShippingContext
from tests.conftest import FakeIntents, FakeVouchers

REQUEST = IntentRequest(
    amount=120_000,
    description="Single payment item",
    line_ids=("c1",),
    shipping=ShippingContext(fee=25_000, quotation_id="q-1", stop_refs=("s1", "s2")),
)


@pytest.fixture
def orchestrator(intents, vouchers) -> PaymentIntentOrchestrator:
    return PaymentIntentOrchestrator(intents, vouchers, interval_s=0.0, max_attempts=60)


class TestCreate:
    async def test_created(self, orchestrator, intents):
        intent = (await orchestrator.create(REQUEST)).unwrap()
        assert intent.amount == 120_000
        assert orchestrator.intent(intent.intent_id) == intent
        assert len(intents.created) == 1

    async def test_no_redirect_target(self, orchestrator, intents):
        intents.order_url = None
        result = await orchestrator.create(REQUEST)
        match result:
            case Error(err):
                assert err.kind is PaymentErrorKind.NO_REDIRECT
                assert err.message == NO_REDIRECT_MESSAGE
            case Ok(_):
                raise AssertionError("expected NO_REDIRECT")

    async def test_provider_failure(self, orchestrator, intents):
        intents.fail_create = RuntimeError("ZaloPay unavailable")
        result = await orchestrator.create(REQUEST)
        match result:
            case Error(err):
                assert err.kind is PaymentErrorKind.PROVIDER
                assert err.message == "ZaloPay unavailable"
            case Ok(_):
                raise AssertionError("expected PROVIDER")


class TestPoll:
    async def test_success_stops_polling(self, orchestrator, intents, vouchers):
        intents.script.extend([IntentStatus.PENDING, IntentStatus.PENDING, IntentStatus.SUCCEEDED])

        outcome = (await orchestrator.poll("pi-1")).unwrap()

        assert outcome.succeeded
        assert outcome.invoice_id == "inv-wallet"
        assert len(intents.lookups) == 3
        assert vouchers.listed == 1

    async def test_budget_exhausted(self, orchestrator, intents, vouchers):
        result = await orchestrator.poll("pi-1")

        match result:
            case Error(err):
                assert err.kind is PaymentErrorKind.STILL_PENDING
                assert err.message == STILL_PENDING_MESSAGE
                assert err.retryable
            case Ok(_):
                raise AssertionError("expected STILL_PENDING")
        assert len(intents.lookups) == 60
        assert orchestrator.intent("pi-1").status is IntentStatus.PENDING
        assert vouchers.listed == 0

    async def test_failed_tick_is_retried(self, orchestrator, intents):
        intents.script.extend([RuntimeError("timeout"), IntentStatus.PENDING, IntentStatus.SUCCEEDED])

        outcome = (await orchestrator.poll("pi-1")).unwrap()

        assert outcome.succeeded
        assert len(intents.lookups) == 3

    @pytest.mark.parametrize(
        ("status", "message"),
        [(IntentStatus.CANCELED, "Payment canceled."), (IntentStatus.EXPIRED, "Payment expired.")],
    )
    async def test_terminal_failure(self, orchestrator, intents, vouchers, status, message):
        intents.script.append(status)

        outcome = (await orchestrator.poll("pi-1")).unwrap()

        assert not outcome.succeeded
        assert outcome.message == message
        assert len(intents.lookups) == 1
        assert vouchers.listed == 0

    async def test_voucher_refresh_failure_is_ignored(self, orchestrator, intents, vouchers):
        async def broken():
            raise RuntimeError("voucher service down")

        vouchers.list_vouchers = broken
        intents.script.append(IntentStatus.SUCCEEDED)

        assert (await orchestrator.poll("pi-1")).unwrap().succeeded


class TestWatch:
    async def test_callback_fires_once(self, orchestrator, intents):
        intents.script.extend([IntentStatus.PENDING, IntentStatus.PENDING, IntentStatus.SUCCEEDED])
        seen = []

        async with FocusScope("payment") as scope:
            await orchestrator.watch("pi-1", scope, seen.append)

        assert len(seen) == 1
        assert seen[0].unwrap().invoice_id == "inv-wallet"
        assert len(intents.lookups) == 3

    async def test_release_stops_polling(self, intents, vouchers):
        orchestrator = PaymentIntentOrchestrator(intents, vouchers, interval_s=0.01, max_attempts=1_000)
        scope = FocusScope("payment")
        seen = []

        task = orchestrator.watch("pi-1", scope, seen.append)
        await asyncio.sleep(0.03)
        assert scope.release() == 1
        await asyncio.gather(task, return_exceptions=True)
        polled = len(intents.lookups)
        await asyncio.sleep(0.03)

        assert task.cancelled()
        assert seen == []
        assert len(intents.lookups) == polled

    async def test_released_scope_refuses_work(self, orchestrator):
        scope = FocusScope()
        scope.release()
        with pytest.raises(ScopeReleasedError):
            orchestrator.watch("pi-1", scope, lambda _: None)

    async def test_scope_runs_lazy_results(self, orchestrator, intents):
        intents.script.append(IntentStatus.SUCCEEDED)

        async with FocusScope("payment") as scope:
            outcome = await scope.spawn(orchestrator.poll("pi-1"))

        assert outcome.unwrap().succeeded

    async def test_released_scope_refuses_lazy_results(self, orchestrator, intents):
        scope = FocusScope()
        scope.release()

        with pytest.raises(ScopeReleasedError):
            scope.spawn(orchestrator.poll("pi-1"))
        assert intents.lookups == []


class TestCancel:
    async def test_optimistic_local_status(self, orchestrator, intents):
        intent = (await orchestrator.create(REQUEST)).unwrap()

        cancelled = await orchestrator.cancel(intent.intent_id)

        assert cancelled.unwrap() == intent.intent_id
        assert orchestrator.intent(intent.intent_id).status is IntentStatus.CANCELED
        assert intents.cancelled == [intent.intent_id]

    async def test_next_observation_wins(self, orchestrator, intents):
        intent = (await orchestrator.create(REQUEST)).unwrap()
        await orchestrator.cancel(intent.intent_id)
        intents.script.append(IntentStatus.SUCCEEDED)

        await orchestrator.poll(intent.intent_id)

        assert orchestrator.intent(intent.intent_id).status is IntentStatus.SUCCEEDED

    async def test_reply_requested_before_cancel_is_discarded(self, intents, vouchers):
        orchestrator = PaymentIntentOrchestrator(intents, vouchers, interval_s=0.0, max_attempts=1)
        intent = (await orchestrator.create(REQUEST)).unwrap()
        intents.gate = asyncio.Event()

        async def poll():
            return await orchestrator.poll(intent.intent_id)

        task = asyncio.create_task(poll())
        while not intents.lookups:
            await asyncio.sleep(0)
        await orchestrator.cancel(intent.intent_id)
        assert orchestrator.intent(intent.intent_id).status is IntentStatus.CANCELED

        intents.gate.set()
        result = await task

        assert orchestrator.intent(intent.intent_id).status is IntentStatus.CANCELED
        match result:
            case Error(err):
                assert err.kind is PaymentErrorKind.STILL_PENDING
            case Ok(_):
                raise AssertionError("expected STILL_PENDING")


class TestRedirect:
    def test_deeplink_preferred(self):
        intent = PaymentIntent(
            "pi", 1, IntentStatus.REQUIRES_ACTION, order_url="https://web", deeplink="zalopay://pay"
        )
        assert pick_redirect_target(intent) == "zalopay://pay"

    def test_order_url_fallback(self):
        intent = PaymentIntent("pi", 1, IntentStatus.REQUIRES_ACTION, order_url="https://web", deeplink="")
        assert pick_redirect_target(intent) == "https://web"

    def test_no_target(self):
        assert pick_redirect_target(PaymentIntent("pi", 1, IntentStatus.REQUIRES_ACTION)) is None

    @pytest.mark.parametrize(
        ("url", "kind"),
        [
            ("https://shop.example/return?status=1", ReturnKind.SUCCESS),
            ("https://shop.example/return?resultCode=00", ReturnKind.SUCCESS),
            ("https://shop.example/return?isSuccess=true", ReturnKind.SUCCESS),
            ("https://shop.example/payment/paid", ReturnKind.SUCCESS),
            ("https://shop.example/success?x=1", ReturnKind.SUCCESS),
            ("https://shop.example/return?reason=cancelled", ReturnKind.CANCELLED),
            ("https://shop.example/payment-failed", ReturnKind.CANCELLED),
            ("https://shop.example/return?status=-49", ReturnKind.UNKNOWN),
            ("https://sb-openapi.zalopay.vn/order/abc", ReturnKind.UNKNOWN),
            ("https://shop.example/successful-looking-page", ReturnKind.UNKNOWN),
            ("", ReturnKind.UNKNOWN),
        ],
    )
    def test_classify(self, url, kind):
        assert classify_return_url(url) is kind
