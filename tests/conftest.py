"""Shared fixtures: in-memory collaborators so tests never touch the network."""
from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import replace

import pytest

from cartpay.checkout import CheckoutCoordinator
from cartpay.config import CheckoutSettings
from cartpay.domain import (
    Address,
    CancelledInvoice,
    CartLine,
    IntentStatus,
    Invoice,
    InvoicePayment,
    InvoiceStatus,
    ItemType,
    PaymentIntent,
    PaymentState,
    ShippingQuote,
    Stop,
    UserProfile,
    Voucher,
)
from cartpay.ports import IntentRequest, OrderRequest, QrSession, VoucherCheck


# ---------- Builders ----------


def make_line(line_id: str = "c1", price: int = 50_000, qty: int = 1, **kwargs) -> CartLine:
    return CartLine(
        line_id=line_id,
        item_id=f"item-{line_id}",
        item_type=kwargs.pop("item_type", ItemType.FOOD),
        quantity=qty,
        unit_price=price,
        **kwargs,
    )


def make_quote(
    quotation_id: str = "q-1",
    total: str = "25000",
    distance_m: float | None = 3_200,
    **kwargs,
) -> ShippingQuote:
    return ShippingQuote(
        quotation_id=quotation_id,
        stops=(
            Stop("s-pickup", "21.035093", "105.747132", "FPT Polytechnic"),
            Stop("s-dropoff", "21.0285", "105.8542", "12 Trang Tien"),
        ),
        price_breakdown={"total": total},
        distance_meters=distance_m,
        **kwargs,
    )


HOME = Address("12 Trang Tien, Hoan Kiem", 21.0285, 105.8542, label="Home", is_default=True)


# ---------- Fakes ----------


class FakeDelivery:
    def __init__(self, quote: ShippingQuote | None = None) -> None:
        self.quote = quote or make_quote()
        self.calls: list[tuple[Stop, Stop, int]] = []
        self.fail_with: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def create_quotation(self, pickup: Stop, dropoff: Stop, quantity: int) -> ShippingQuote:
        self.calls.append((pickup, dropoff, quantity))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return self.quote


class FakeVouchers:
    def __init__(self) -> None:
        self.checks: list[tuple[str, int, bool]] = []
        self.verdicts: deque[VoucherCheck | Exception] = deque()
        self.listed = 0
        self.vouchers: list[Voucher] = []

    async def validate(
        self, voucher_id: str, order_amount: int, *, validate_only: bool = True
    ) -> VoucherCheck:
        self.checks.append((voucher_id, order_amount, validate_only))
        verdict = self.verdicts.popleft() if self.verdicts else VoucherCheck(success=True)
        if isinstance(verdict, Exception):
            raise verdict
        return verdict

    async def list_vouchers(self) -> list[Voucher]:
        self.listed += 1
        return list(self.vouchers)


class FakeInvoices:
    def __init__(self) -> None:
        self.created: list[OrderRequest] = []
        self.marked: list[str] = []
        self.cancelled: list[str] = []
        self.fail_create: Exception | None = None
        self.fail_mark_paid: Exception | None = None
        self.lose_mark_paid_reply = False
        self.fail_cancel: Exception | None = None
        self.gate: asyncio.Event | None = None
        self._store: dict[str, Invoice] = {}

    async def create(self, request: OrderRequest) -> Invoice:
        self.created.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_create is not None:
            raise self.fail_create
        invoice = Invoice(
            id=f"inv-{len(self.created)}",
            total=0,
            payment=InvoicePayment(method=request.payment_method, reference=request.payment_ref),
            shipping_fee=request.shipping.fee,
            voucher_id=request.voucher_id,
            line_ids=request.line_ids,
        )
        self._store[invoice.id] = invoice
        return invoice

    async def mark_paid(self, invoice_id: str) -> Invoice:
        self.marked.append(invoice_id)
        if self.fail_mark_paid is not None and not self.lose_mark_paid_reply:
            raise self.fail_mark_paid
        invoice = self._store[invoice_id]
        paid = replace(invoice, payment=replace(invoice.payment, status=PaymentState.PAID))
        self._store[invoice_id] = paid
        if self.fail_mark_paid is not None:
            # Recorded server-side, reply lost on the way back.
            raise self.fail_mark_paid
        return paid

    async def cancel(self, invoice_id: str) -> CancelledInvoice:
        self.cancelled.append(invoice_id)
        if self.fail_cancel is not None:
            raise self.fail_cancel
        invoice = replace(self._store[invoice_id], status=InvoiceStatus.CANCELED)
        self._store[invoice_id] = invoice
        return CancelledInvoice(invoice=invoice)

    async def get(self, invoice_id: str) -> Invoice:
        return self._store[invoice_id]


class FakeIntents:
    """Scripted provider: get() pops the next status, repeating the last one."""

    def __init__(self) -> None:
        self.created: list[IntentRequest] = []
        self.lookups: list[str] = []
        self.cancelled: list[str] = []
        self.script: deque[IntentStatus | Exception] = deque()
        self.order_url: str | None = "https://sb-openapi.zalopay.vn/order/abc"
        self.deeplink: str | None = None
        self.fail_create: Exception | None = None
        self.gate: asyncio.Event | None = None
        self._last: IntentStatus = IntentStatus.PENDING

    def _intent(self, intent_id: str, status: IntentStatus, amount: int = 0) -> PaymentIntent:
        return PaymentIntent(
            intent_id=intent_id,
            amount=amount,
            status=status,
            order_url=self.order_url,
            deeplink=self.deeplink,
            invoice_id="inv-wallet" if status is IntentStatus.SUCCEEDED else None,
        )

    async def create(self, request: IntentRequest) -> PaymentIntent:
        self.created.append(request)
        if self.fail_create is not None:
            raise self.fail_create
        return self._intent(f"pi-{len(self.created)}", IntentStatus.REQUIRES_ACTION, request.amount)

    async def get(self, intent_id: str) -> PaymentIntent:
        self.lookups.append(intent_id)
        step = self.script.popleft() if self.script else self._last
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(step, Exception):
            raise step
        self._last = step
        return self._intent(intent_id, step)

    async def cancel(self, intent_id: str) -> str:
        self.cancelled.append(intent_id)
        return intent_id


class FakeQr:
    def __init__(self) -> None:
        self.created: list[tuple[int, str]] = []

    async def create(self, amount: int, description: str) -> QrSession:
        self.created.append((amount, description))
        session_id = f"vietqr_{len(self.created)}"
        return QrSession(session_id=session_id, qr_url=f"https://img.vietqr.io/{session_id}.png")


# ---------- Fixtures ----------


@pytest.fixture
def settings() -> CheckoutSettings:
    return CheckoutSettings(_env_file=None, poll_interval_s=0.0, poll_max_attempts=60)


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(phone_number="0912345678", addresses=(HOME,))


@pytest.fixture
def lines() -> tuple[CartLine, ...]:
    return (make_line("c1", 45_000, 2), make_line("c2", 30_000, 1))


@pytest.fixture
def delivery() -> FakeDelivery:
    return FakeDelivery()


@pytest.fixture
def vouchers() -> FakeVouchers:
    return FakeVouchers()


@pytest.fixture
def invoices() -> FakeInvoices:
    return FakeInvoices()


@pytest.fixture
def intents() -> FakeIntents:
    return FakeIntents()


@pytest.fixture
def qr() -> FakeQr:
    return FakeQr()


@pytest.fixture
def coordinator(settings, delivery, vouchers, invoices, intents, qr) -> CheckoutCoordinator:
    return CheckoutCoordinator(
        delivery=delivery,
        vouchers=vouchers,
        invoices=invoices,
        intents=intents,
        qr=qr,
        settings=settings,
    )
